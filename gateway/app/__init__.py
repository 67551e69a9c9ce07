"""
Runbook AI CORS Proxy application package.

Modules:
- config: Environment settings and the compiled-in origin allowlist
- models: Per-request pipeline models and JSON error bodies
- proxy: Origin-gated forwarding router
- main: Application factory and uvicorn entry point
"""

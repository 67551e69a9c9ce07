"""Runbook AI CORS forwarding gateway."""

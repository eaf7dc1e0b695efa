"""
Health API (FastAPI)

HTTP endpoints reporting bootstrap status:
- GET /REST/v1/healthcheck - Plain-text status for load balancers
- GET /health - Structured status

Usage:
    from api.app import create_app, start_health_server
"""

__version__ = "0.1.0"

"""
HTTP trigger surface for the order notifiers.

This package provides a FastAPI application that exposes:
- Trigger endpoints for order created/updated events
- Data exploration endpoints for the fixtures
- The mock push channel's message history
"""

from api.main import app

__all__ = ["app"]

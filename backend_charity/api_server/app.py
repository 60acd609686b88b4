"""
FastAPI/ASGI application entrypoint.

Builds the app from the environment; a missing GEMINI_API_KEY fails here.
Run with: uvicorn backend_charity.api_server.app:app --host 0.0.0.0 --port 5000
"""

from backend_charity.api_server.server import create_app

app = create_app()

__all__ = ["app"]

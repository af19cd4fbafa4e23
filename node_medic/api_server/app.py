"""
FastAPI/ASGI application entrypoint.

Build the app from env/.env/config.yaml settings (no CLI flags).
Run with: uvicorn node_medic.api_server.app:app --host 0.0.0.0 --port 8080
"""

from node_medic.api_server.server import create_app

app = create_app()

__all__ = ["app"]

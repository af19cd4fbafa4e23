"""
API server package: FastAPI app exposing /ready and /health.
"""

from node_medic.api_server.server import create_app

__all__ = ["create_app"]

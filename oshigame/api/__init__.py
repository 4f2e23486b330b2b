"""
API module - HTTP surface for test play.

Provides:
- APIService: framework-agnostic request handling
- create_app: FastAPI application factory (needs the fastapi extra)

Run with: uvicorn --factory oshigame.api.app:create_app
"""

from .service import APIService, file_stores, in_memory_stores

__all__ = [
    "APIService",
    "file_stores",
    "in_memory_stores",
]

"""
ledwire - API Layer

Network surfaces feeding the ingestion pipeline.

Structure:
- main.py            : FastAPI app factory (websocket + HTTP)
- websocket.py       : WebSocket ingestion endpoint
- stream_listener.py : raw TCP length-prefixed stream transport
- routes/            : HTTP endpoint handlers
- schemas/           : Pydantic response models
"""

from api.main import create_app

__all__ = ["create_app"]

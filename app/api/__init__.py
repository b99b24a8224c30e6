# API routes
from app.api.stores import router as stores_router


__all__ = [
    "stores_router",
]

from app.models.review import Review

__all__ = [
    "Review",
]

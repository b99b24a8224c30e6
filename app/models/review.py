from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Review(Base):
    """Customer review for a store (Google, Uber Eats, in-store survey, ...)."""

    __tablename__ = "reviews"
    __table_args__ = (Index("ix_reviews_store_created", "store_id", "created_at"),)

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Owning store (stores themselves live outside this service)
    store_id: Mapped[int] = mapped_column(Integer, nullable=False)

    rating: Mapped[float | None] = mapped_column(Float, nullable=True)  # 1.0-5.0
    source: Mapped[str] = mapped_column(String(100), default="Unknown")

    # Supplied by the caller or derived from rating on insert
    sentiment_score: Mapped[float | None] = mapped_column(Float, nullable=True)  # -1.0 to 1.0
    sentiment_label: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # Values: "Positive", "Neutral", "Negative"

    text: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, store_id={self.store_id}, rating={self.rating})>"

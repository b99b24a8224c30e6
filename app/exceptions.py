"""Errors raised by the review analytics services."""
from __future__ import annotations


class ReviewAnalyticsError(Exception):
    """Base class for review analytics errors."""


class InvalidInputError(ReviewAnalyticsError, ValueError):
    """Malformed request input (store id, upload file, body).

    Raised before the review store is touched.
    """


class StoreUnavailable(ReviewAnalyticsError):
    """The review store could not be reached or a query failed."""


class ComputationError(ReviewAnalyticsError):
    """A dependent read failed while building a derived view."""

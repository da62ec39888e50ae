"""ORM models."""

from prd_reviewer.boundary.db.models.review_model import ReviewModel, ReviewStatus

__all__ = ["ReviewModel", "ReviewStatus"]

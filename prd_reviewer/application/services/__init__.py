"""Application service layer."""

from prd_reviewer.application.services.review_runner import ReviewRunner
from prd_reviewer.application.services.review_service import ReviewService

__all__ = ["ReviewRunner", "ReviewService"]

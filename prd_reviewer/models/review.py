"""
Review domain models and schemas.

Request/response schemas for review submission, listing and status polling.

Dependencies: pydantic
System role: Review API contracts
"""

import enum
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from prd_reviewer.models.usage import SessionUsage


class ReviewStatus(str, enum.Enum):
    """
    Review execution states.

    PENDING: Submitted, run not started yet
    RUNNING: Agent engine working on the review
    COMPLETED: Output and usage saved
    ERROR: Run failed; see the error field
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ReviewStatus.COMPLETED, ReviewStatus.ERROR)


class SupplementarySource(BaseModel):
    """Supplementary upload stored alongside a PRD."""

    file_name: str = Field(description="Stored file name")
    original_name: str = Field(description="File name as uploaded")
    label: str | None = Field(
        default=None,
        description="Source category: Design Doc, Tech Spec, User Research, Meeting Notes or Other",
    )


class SupplementaryContent(BaseModel):
    """Extracted text of one supplementary source."""

    name: str
    label: str | None = None
    content: str


class ReviewResponse(BaseModel):
    """Review metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    file_name: str
    original_name: str
    repo_paths: list[str]
    status: ReviewStatus
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    error: str | None = None
    usage: SessionUsage | None = None
    supplementary_files: list[SupplementarySource] = Field(default_factory=list)
    additional_context: str | None = None
    web_search_enabled: bool = False


class ReviewDetailResponse(ReviewResponse):
    """Review metadata with document content and generated output."""

    prd_content: str | None = None
    review_output: str | None = None
    supplementary_contents: list[SupplementaryContent] | None = None


class ReviewStatusResponse(BaseModel):
    """Response schema for status polling."""

    id: uuid.UUID
    status: ReviewStatus
    error: str | None = None

"""
Review API endpoints.

Routes:
- POST /reviews - Upload a PRD and start a review
- GET /reviews - List reviews, newest first
- GET /reviews/{id} - Review detail with document text and output
- GET /reviews/{id}/status - Status polling
- POST /reviews/{id}/rerun - Run a finished review again

Dependencies: prd_reviewer.application.services, prd_reviewer.models
System role: Review HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile

from prd_reviewer.api.deps import (
    get_review_runner,
    get_review_service,
    get_settings_dependency,
)
from prd_reviewer.api.routers.router_utils.review_form import (
    check_file_type,
    parse_labels,
    parse_repo_paths,
    read_limited,
)
from prd_reviewer.application.services.review_runner import ReviewRunner
from prd_reviewer.application.services.review_service import ReviewService
from prd_reviewer.configs import Settings
from prd_reviewer.core.document_processing.parsing_task import safe_file_name
from prd_reviewer.core.exceptions import ReviewConflictError, ReviewNotFoundError, ValidationError
from prd_reviewer.models.review import (
    ReviewDetailResponse,
    ReviewResponse,
    ReviewStatusResponse,
    SupplementarySource,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewResponse, status_code=201)
async def create_review(
    background_tasks: BackgroundTasks,
    file: UploadFile | None = File(None),
    repo_paths: str | None = Form(None),
    supplementary_files: list[UploadFile] | None = File(None),
    supplementary_labels: str | None = Form(None),
    additional_context: str | None = Form(None),
    web_search_enabled: bool = Form(False),
    review_service: ReviewService = Depends(get_review_service),
    runner: ReviewRunner = Depends(get_review_runner),
    settings: Settings = Depends(get_settings_dependency),
) -> ReviewResponse:
    """
    Upload a PRD and start its review in the background.

    Args:
        file: PRD document (.md, .markdown, .txt, .pdf, .docx)
        repo_paths: JSON array or comma separated repository paths
        supplementary_files: Optional reference documents
        supplementary_labels: JSON array of labels, positionally matched
        additional_context: Free-form notes for the reviewer agents
        web_search_enabled: Add a web researcher to the run

    Returns:
        ReviewResponse: The pending review

    Raises:
        HTTPException(400): Missing or unsupported file, bad repo paths, file too large
    """
    storage = settings.storage
    supplementary_files = supplementary_files or []

    try:
        if file is None:
            raise ValidationError("No file uploaded", field="file")
        original_name = check_file_type(file)
        paths = parse_repo_paths(repo_paths)

        if len(supplementary_files) > storage.max_supplementary_files:
            raise ValidationError(
                f"Too many supplementary files. Maximum: {storage.max_supplementary_files}",
                field="supplementary_files",
            )
        supplementary_names = [check_file_type(upload) for upload in supplementary_files]

        content = await read_limited(file, storage.max_upload_bytes)
        supplementary_contents = [
            await read_limited(upload, storage.max_upload_bytes) for upload in supplementary_files
        ]
    except ValidationError as e:
        logger.warning("Review submission rejected", extra={"reason": e.message, **e.details})
        raise HTTPException(status_code=400, detail=e.message)

    labels = parse_labels(supplementary_labels)
    supplementary_meta = [
        SupplementarySource(
            file_name=safe_file_name(name),
            original_name=name,
            label=labels[index] if index < len(labels) else None,
        )
        for index, name in enumerate(supplementary_names)
    ]

    file_name = safe_file_name(original_name)
    review = await review_service.create(
        original_name=original_name,
        file_name=file_name,
        repo_paths=paths,
        supplementary_files=supplementary_meta,
        additional_context=(additional_context or "").strip() or None,
        web_search_enabled=web_search_enabled,
    )

    key = str(review.id)
    file_store = review_service.file_store
    file_store.save_upload(file_store.upload_path(key, file_name), content)
    for index, (source, data) in enumerate(zip(supplementary_meta, supplementary_contents)):
        file_store.save_upload(file_store.supplementary_path(key, index, source.file_name), data)

    # Commit before scheduling so the run and status polling can find the row
    await review_service.db.commit()

    logger.info(
        "Review submitted",
        extra={
            "review_id": key,
            "original_name": original_name,
            "repo_count": len(paths),
            "supplementary_count": len(supplementary_meta),
        },
    )
    background_tasks.add_task(runner.run, review.id)
    return ReviewResponse.model_validate(review)


@router.get("", response_model=list[ReviewResponse])
async def list_reviews(
    review_service: ReviewService = Depends(get_review_service),
) -> list[ReviewResponse]:
    """List all reviews, newest first."""
    reviews = await review_service.list_reviews()
    return [ReviewResponse.model_validate(review) for review in reviews]


@router.get("/{review_id}/status", response_model=ReviewStatusResponse)
async def get_review_status(
    review_id: UUID,
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewStatusResponse:
    """
    Get review status for polling clients.

    Raises:
        HTTPException(404): Review not found
    """
    try:
        return await review_service.status(review_id)
    except ReviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/{review_id}", response_model=ReviewDetailResponse)
async def get_review(
    review_id: UUID,
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewDetailResponse:
    """
    Get review detail: metadata, PRD text, supplementary text and output.

    Raises:
        HTTPException(404): Review not found
    """
    try:
        return await review_service.get_detail(review_id)
    except ReviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/{review_id}/rerun", response_model=ReviewResponse)
async def rerun_review(
    review_id: UUID,
    background_tasks: BackgroundTasks,
    review_service: ReviewService = Depends(get_review_service),
    runner: ReviewRunner = Depends(get_review_runner),
) -> ReviewResponse:
    """
    Reset a finished or pending review and run it again.

    Raises:
        HTTPException(404): Review not found
        HTTPException(409): Review is running
    """
    try:
        review = await review_service.rerun(review_id)
    except ReviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ReviewConflictError as e:
        raise HTTPException(status_code=409, detail=e.message)

    await review_service.db.commit()
    background_tasks.add_task(runner.run, review_id)
    return ReviewResponse.model_validate(review)

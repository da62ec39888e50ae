"""
Review submission form helpers.

Parses and validates the multipart fields of POST /reviews. Every check
runs before a review row exists, so a rejected submission leaves nothing
behind.

Dependencies: fastapi, prd_reviewer.core
System role: Request validation for review submission
"""

import json
import logging
from pathlib import Path

from fastapi import UploadFile

from prd_reviewer.core.document_processing.parsing_task import (
    SUPPORTED_EXTENSIONS,
    is_supported_file,
)
from prd_reviewer.core.exceptions import (
    RepositoryPathNotFoundError,
    UnsupportedFileTypeError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def parse_repo_paths(raw: str | None) -> list[str]:
    """
    Parse repository paths from a JSON array or a comma separated list.

    Raises:
        ValidationError: If no usable path is given
        RepositoryPathNotFoundError: If a path does not exist on this host
    """
    if raw is None or not raw.strip():
        raise ValidationError("repo_paths is required (array of repo paths)", field="repo_paths")

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = raw.split(",")

    if isinstance(parsed, str):
        parsed = [parsed]
    if not isinstance(parsed, list):
        raise ValidationError("repo_paths must be a list of paths", field="repo_paths")

    repo_paths = [str(path).strip() for path in parsed if str(path).strip()]
    if not repo_paths:
        raise ValidationError("At least one repo path is required", field="repo_paths")

    for repo_path in repo_paths:
        if not Path(repo_path).exists():
            raise RepositoryPathNotFoundError(repo_path)
    return repo_paths


def parse_labels(raw: str | None) -> list[str | None]:
    """Supplementary labels as a JSON array; anything unparseable means no labels."""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed supplementary_labels")
        return []
    if not isinstance(parsed, list):
        return []
    return [str(label) if label else None for label in parsed]


def check_file_type(upload: UploadFile) -> str:
    """
    Validate an upload's name and extension.

    Returns:
        str: The original file name

    Raises:
        ValidationError: If the upload has no file name
        UnsupportedFileTypeError: If the extension cannot be parsed
    """
    if not upload.filename:
        raise ValidationError("No file uploaded", field="file")
    if not is_supported_file(upload.filename):
        raise UnsupportedFileTypeError(upload.filename, SUPPORTED_EXTENSIONS)
    return upload.filename


async def read_limited(upload: UploadFile, max_bytes: int) -> bytes:
    """
    Read an upload fully, rejecting anything above max_bytes.

    Raises:
        ValidationError: If the file is too large
    """
    content = await upload.read()
    if len(content) > max_bytes:
        raise ValidationError(
            f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB",
            field="file",
            details={"file_name": upload.filename, "size": len(content)},
        )
    return content

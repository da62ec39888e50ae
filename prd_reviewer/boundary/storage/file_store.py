"""
Review file storage.

Layout under the data directory:
    uploads/{review_id}_{file_name}
    uploads/{review_id}_supp_{index}_{file_name}
    outputs/{review_id}/review.md

Dependencies: pathlib
System role: Durable storage of uploaded documents and generated reviews
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

REVIEW_OUTPUT_NAME = "review.md"


class ReviewFileStore:
    """Filesystem-backed storage for one data directory."""

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)
        self.uploads_dir = self.data_dir / "uploads"
        self.outputs_dir = self.data_dir / "outputs"

    def ensure_dirs(self) -> None:
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        self.outputs_dir.mkdir(parents=True, exist_ok=True)

    def upload_path(self, review_id: str, file_name: str) -> Path:
        return self.uploads_dir / f"{review_id}_{file_name}"

    def supplementary_path(self, review_id: str, index: int, file_name: str) -> Path:
        return self.uploads_dir / f"{review_id}_supp_{index}_{file_name}"

    def output_path(self, review_id: str) -> Path:
        return self.outputs_dir / review_id / REVIEW_OUTPUT_NAME

    def save_upload(self, path: Path, content: bytes) -> Path:
        self.ensure_dirs()
        path.write_bytes(content)
        return path

    def save_output(self, review_id: str, markdown: str) -> Path:
        """Write the review markdown, replacing any earlier run's output."""
        path = self.output_path(review_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(markdown, encoding="utf-8")
        logger.info("Saved review output", extra={"review_id": review_id, "path": str(path)})
        return path

    def read_output(self, review_id: str) -> str | None:
        path = self.output_path(review_id)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def read_text(self, path: Path) -> str | None:
        """
        Read a stored upload as UTF-8 text.

        Returns:
            str | None: Text content, None when missing or not valid UTF-8
        """
        try:
            return path.read_bytes().decode("utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError:
            return None

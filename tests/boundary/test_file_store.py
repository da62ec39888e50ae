"""
Test suite for review file storage.

System role: Verification of upload and output layout on disk
"""

from prd_reviewer.boundary.storage.file_store import ReviewFileStore


class TestReviewFileStore:
    """Test suite for ReviewFileStore."""

    def test_paths_follow_layout(self, tmp_path) -> None:
        store = ReviewFileStore(tmp_path)

        assert store.upload_path("r1", "prd.md") == tmp_path / "uploads" / "r1_prd.md"
        assert store.supplementary_path("r1", 2, "notes.txt") == tmp_path / "uploads" / "r1_supp_2_notes.txt"
        assert store.output_path("r1") == tmp_path / "outputs" / "r1" / "review.md"

    def test_save_upload_creates_directories(self, tmp_path) -> None:
        # Arrange
        store = ReviewFileStore(tmp_path / "data")

        # Act
        path = store.save_upload(store.upload_path("r1", "prd.md"), b"# PRD")

        # Assert
        assert path.read_bytes() == b"# PRD"

    def test_output_round_trip_and_overwrite(self, file_store) -> None:
        file_store.save_output("r1", "# First")
        file_store.save_output("r1", "# Second")

        assert file_store.read_output("r1") == "# Second"

    def test_read_output_missing(self, file_store) -> None:
        assert file_store.read_output("nope") is None

    def test_read_text_returns_none_for_binary(self, file_store) -> None:
        path = file_store.save_upload(file_store.upload_path("r1", "spec.pdf"), b"%PDF-1.4\n\xff\xfe")

        assert file_store.read_text(path) is None
        assert file_store.read_text(file_store.upload_path("r1", "missing.md")) is None

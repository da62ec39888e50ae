"""Local file storage for uploads and review outputs."""

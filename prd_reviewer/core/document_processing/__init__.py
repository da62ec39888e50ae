"""Text extraction for uploaded review documents."""

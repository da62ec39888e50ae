"""Application services: review persistence and background runs."""

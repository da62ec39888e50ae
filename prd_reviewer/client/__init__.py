"""
Python client for watching review progress.

Reconciles the SSE push channel with status polling into a single view of
a running review.
"""

from prd_reviewer.client.progress_state import ReviewProgressState
from prd_reviewer.client.progress_watcher import ReviewProgressWatcher

__all__ = ["ReviewProgressState", "ReviewProgressWatcher"]

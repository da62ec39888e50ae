"""PRD reviewer: live-streamed multi-agent review of product requirement documents."""

__version__ = "0.1.0"

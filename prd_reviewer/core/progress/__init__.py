"""Progress inference, usage accounting and event fan-out."""

"""Human readable token counts and durations."""


def format_tokens(count: int) -> str:
    """1234 -> 1.2K, 2500000 -> 2.5M."""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def format_duration(ms: int) -> str:
    """Milliseconds as 42s or 3m 5s."""
    seconds = ms // 1000
    if seconds < 60:
        return f"{seconds}s"
    return f"{seconds // 60}m {seconds % 60}s"

"""Default colors for activity types created without one."""

COLOR_PALETTE = (
    "#3b82f6",
    "#10b981",
    "#8b5cf6",
    "#f97316",
    "#14b8a6",
    "#f59e0b",
    "#ef4444",
    "#6366f1",
    "#f43f5e",
)


def palette_color(existing_count: int) -> str:
    """Color for the next activity type, given how many already exist."""
    return COLOR_PALETTE[max(existing_count, 0) % len(COLOR_PALETTE)]

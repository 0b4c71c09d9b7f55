"""Level calculation from cumulative points."""

MAX_LEVEL = 10

# Level n + 1 needs strictly more than the nth threshold. Each step doubles.
LEVEL_THRESHOLDS = tuple(200 * 2**i for i in range(MAX_LEVEL - 1))


def resolve_level(total_points: int) -> int:
    """Calculate level (1-10) from total points."""
    points = max(0, int(total_points or 0))
    level = 1
    for threshold in LEVEL_THRESHOLDS:
        if points <= threshold:
            break
        level += 1
    return level


def points_for_level(level: int) -> int:
    """Threshold a user must exceed to reach a specific level."""
    if level <= 1:
        return 0
    level = min(level, MAX_LEVEL)
    return LEVEL_THRESHOLDS[level - 2]


def level_progress(total_points: int) -> dict:
    """Progress towards the next level, for display."""
    level = resolve_level(total_points)
    if level >= MAX_LEVEL:
        return {"level": level, "next_level_points": None, "progress_percent": 100}

    current_floor = points_for_level(level)
    next_threshold = points_for_level(level + 1)
    progress = (max(0, total_points) - current_floor) / (next_threshold - current_floor)
    return {
        "level": level,
        "next_level_points": next_threshold,
        "progress_percent": min(int(progress * 100), 99),
    }

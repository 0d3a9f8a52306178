"""Thesis progress marker of a student."""

PROGRESS_ORDER = ("BAB I", "BAB II", "BAB III", "BAB IV", "BAB V", "Selesai")
"""Chapter I..V followed by Completed."""

INITIAL_PROGRESS = PROGRESS_ORDER[0]
FINAL_PROGRESS = PROGRESS_ORDER[-1]


def next_progress(current: str | None) -> str:
    """
    Return the marker one step after ``current``.

    The final step maps to itself. An unknown or empty marker is treated as
    the initial one, so the result never skips more than a single step from
    a valid position.
    """
    if current not in PROGRESS_ORDER:
        return INITIAL_PROGRESS
    index = PROGRESS_ORDER.index(current)
    return PROGRESS_ORDER[min(index + 1, len(PROGRESS_ORDER) - 1)]

"""
Submission status state machine.

A bimbingan starts in ``MENUNGGU`` (awaiting review). The advisor moves it
exactly once to one of the review outcomes; every outcome is terminal.

    menunggu ──► revisi
             ├─► acc
             └─► lanjut_bab
"""

from enum import Enum

from simta.workflow.errors import ConflictError, InvalidInputError


class SubmissionStatus(str, Enum):
    """Lifecycle status of a bimbingan submission."""

    MENUNGGU = "menunggu"
    """Awaiting review by the advisor."""
    REVISI = "revisi"
    """Revision requested."""
    ACC = "acc"
    """Approved."""
    LANJUT_BAB = "lanjut_bab"
    """Approved and the student advances to the next chapter."""

    @property
    def is_terminal(self) -> bool:
        return self is not SubmissionStatus.MENUNGGU

    @property
    def label(self) -> str:
        """Display text used in notifications."""
        return _LABELS[self]

    @property
    def color(self) -> str:
        """Badge colour used by the frontend."""
        return _COLORS[self]


_LABELS = {
    SubmissionStatus.MENUNGGU: "Menunggu",
    SubmissionStatus.REVISI: "Revisi",
    SubmissionStatus.ACC: "ACC",
    SubmissionStatus.LANJUT_BAB: "Lanjut Bab",
}

_COLORS = {
    SubmissionStatus.MENUNGGU: "yellow",
    SubmissionStatus.REVISI: "red",
    SubmissionStatus.ACC: "green",
    SubmissionStatus.LANJUT_BAB: "blue",
}

REVIEW_OUTCOMES = frozenset(
    {SubmissionStatus.REVISI, SubmissionStatus.ACC, SubmissionStatus.LANJUT_BAB}
)
"""Statuses an advisor may choose when reviewing."""

TRANSITIONS = {
    SubmissionStatus.MENUNGGU: REVIEW_OUTCOMES,
    SubmissionStatus.REVISI: frozenset(),
    SubmissionStatus.ACC: frozenset(),
    SubmissionStatus.LANJUT_BAB: frozenset(),
}


def parse_status(value) -> SubmissionStatus:
    """Coerce a raw value into a `SubmissionStatus` or raise `InvalidInputError`."""
    if isinstance(value, SubmissionStatus):
        return value
    try:
        return SubmissionStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in SubmissionStatus)
        raise InvalidInputError(f"Status harus salah satu dari: {allowed}")


def transition(current, target) -> SubmissionStatus:
    """
    Validate the edge ``current -> target`` and return the new status.

    Raises
    ------
    InvalidInputError
        If ``target`` is not a review outcome (for example ``menunggu``).
    ConflictError
        If ``current`` is already terminal.
    """
    current = parse_status(current)
    target = parse_status(target)

    if target not in REVIEW_OUTCOMES:
        allowed = ", ".join(sorted(s.value for s in REVIEW_OUTCOMES))
        raise InvalidInputError(f"Status feedback harus salah satu dari: {allowed}")

    if target not in TRANSITIONS[current]:
        raise ConflictError(
            f"Bimbingan ini sudah direview dengan status '{current.value}'. "
            "Tidak dapat mengubah feedback yang sudah diberikan."
        )
    return target

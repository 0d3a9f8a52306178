import pytest

from simta.workflow.errors import ConflictError, InvalidInputError
from simta.workflow.status import REVIEW_OUTCOMES, SubmissionStatus, parse_status, transition


@pytest.mark.parametrize("target", ["revisi", "acc", "lanjut_bab"])
def test_awaiting_moves_to_every_review_outcome(target):
    assert transition("menunggu", target) is SubmissionStatus(target)


@pytest.mark.parametrize("current", ["revisi", "acc", "lanjut_bab"])
@pytest.mark.parametrize("target", ["revisi", "acc", "lanjut_bab"])
def test_review_outcomes_are_terminal(current, target):
    with pytest.raises(ConflictError, match="sudah direview"):
        transition(current, target)


def test_awaiting_is_not_a_target():
    with pytest.raises(InvalidInputError):
        transition(SubmissionStatus.MENUNGGU, SubmissionStatus.MENUNGGU)


def test_unknown_status():
    with pytest.raises(InvalidInputError):
        parse_status("ditolak")


def test_terminal_flags_and_display():
    assert not SubmissionStatus.MENUNGGU.is_terminal
    assert all(status.is_terminal for status in REVIEW_OUTCOMES)
    assert SubmissionStatus.LANJUT_BAB.label == "Lanjut Bab"
    assert SubmissionStatus.ACC.color == "green"
    assert SubmissionStatus.REVISI.color == "red"

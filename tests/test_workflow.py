import logging
import os
import uuid

import pytest
from sqlalchemy.exc import OperationalError

from simta.database.core import funcs
from simta.database.core.funcs import (
    add_reply,
    create_submission,
    get_bimbingan,
    get_download,
    get_pending_count,
    get_pending_reviews,
    get_replies,
    give_feedback,
    list_bimbingan,
)
from simta.database.daos.bimbingan_dao import BimbinganDao
from simta.database.daos.user_dao import UserDao
from simta.database.entities.bimbingan import Bimbingan
from simta.notifications.whatsapp import NotificationKind
from simta.workflow.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from simta.workflow.principal import Principal, Role

from conftest import add_user, read_user


def submit(principal, make_document, slot="dospem_1", judul="Bab 1 Pendahuluan", catatan=None):
    return create_submission(
        principal=principal,
        dosen_type=slot,
        judul=judul,
        document=make_document(),
        catatan=catatan,
    )


class TestCreateSubmission:
    def test_first_submission_is_v1_and_awaiting(self, people, make_document, dispatcher, notifier):
        created = submit(people.student, make_document, catatan="Mohon dicek")

        assert created["version"] == "V1"
        assert created["status"] == "menunggu"
        assert created["status_color"] == "yellow"
        assert created["dosen"]["id"] == str(people.dosen_1.id)
        assert created["dosen"]["name"] == "Dr. Andi"
        assert created["mahasiswa"]["id"] == str(people.student.id)
        assert created["file_size_formatted"].endswith("Bytes")

        dispatcher.wait_idle(timeout=5)
        assert len(notifier.sent) == 1
        sent = notifier.sent[0]
        assert sent.phone == "081234567890"
        assert sent.kind is NotificationKind.BIMBINGAN_BARU
        assert sent.context == {"mahasiswa_nama": "Siti Aminah", "catatan": "Mohon dicek"}

    def test_second_submission_while_pending_conflicts(self, people, make_document):
        submit(people.student, make_document)
        document = make_document()

        with pytest.raises(ConflictError) as exc_info:
            create_submission(
                principal=people.student, dosen_type="dospem_1", judul="Bab 1 revisi", document=document
            )

        assert exc_info.value.cleanup_paths == (document.path,)

    def test_pending_is_per_advisor(self, people, make_document):
        first = submit(people.student, make_document, slot="dospem_1")
        second = submit(people.student, make_document, slot="dospem_2")

        assert first["version"] == "V1"
        assert second["version"] == "V1"
        assert second["dosen"]["id"] == str(people.dosen_2.id)

    def test_advisor_without_whatsapp_is_skipped(self, people, make_document, dispatcher, notifier):
        submit(people.student, make_document, slot="dospem_2")

        dispatcher.wait_idle(timeout=5)
        assert notifier.sent == []

    def test_non_pdf_is_rejected_with_cleanup(self, people, make_document):
        document = make_document(name="bab1.docx", media_type="application/msword")

        with pytest.raises(InvalidInputError) as exc_info:
            create_submission(
                principal=people.student, dosen_type="dospem_1", judul="Bab 1 Pendahuluan", document=document
            )

        assert exc_info.value.cleanup_paths == (document.path,)
        assert list_bimbingan(principal=people.student)["pagination"]["total"] == 0

    @pytest.mark.parametrize("media_type", ["text/x-not-a-pdf", "application/octet-stream; name=bab1.pdf"])
    def test_type_mentioning_pdf_is_rejected(self, people, make_document, media_type):
        document = make_document(media_type=media_type)

        with pytest.raises(InvalidInputError) as exc_info:
            create_submission(
                principal=people.student, dosen_type="dospem_1", judul="Bab 1 Pendahuluan", document=document
            )

        assert exc_info.value.cleanup_paths == (document.path,)
        assert list_bimbingan(principal=people.student)["pagination"]["total"] == 0

    def test_unassigned_slot_is_invalid(self, people, make_document):
        with pytest.raises(InvalidInputError, match="belum di-assign"):
            submit(people.lonely_student, make_document)

    def test_only_students_submit(self, people, make_document):
        with pytest.raises(ForbiddenError):
            submit(people.dosen_1, make_document)

    def test_inactive_student_is_rejected(self, people, make_document):
        inactive = Principal(id=people.student.id, role=Role.MAHASISWA, status="nonaktif")
        with pytest.raises(ForbiddenError):
            submit(inactive, make_document)

    @pytest.mark.parametrize("judul", ["abc", "x" * 201, "    "])
    def test_title_length_is_validated(self, people, make_document, judul):
        with pytest.raises(InvalidInputError):
            submit(people.student, make_document, judul=judul)

    def test_note_length_is_validated(self, people, make_document):
        with pytest.raises(InvalidInputError):
            submit(people.student, make_document, catatan="x" * 1001)

    def test_invalid_slot(self, people, make_document):
        with pytest.raises(InvalidInputError):
            submit(people.student, make_document, slot="dospem_3")

    def test_lost_race_surfaces_as_conflict(self, people, make_document, monkeypatch, caplog):
        submit(people.student, make_document)
        monkeypatch.setattr(BimbinganDao, "hasPendingBimbingan", lambda self, session, m, d: False)
        caplog.set_level(logging.INFO, logger="simta.database.daos.bimbingan_dao")

        with pytest.raises(ConflictError):
            submit(people.student, make_document)

        assert list_bimbingan(principal=people.student)["pagination"]["total"] == 1
        dao_records = [r for r in caplog.records if r.name == "simta.database.daos.bimbingan_dao"]
        assert [r.levelno for r in dao_records] == [logging.WARNING]
        assert dao_records[0].exc_info is None


class TestSequence:
    def test_versions_are_consecutive_per_pair(self, people, make_document):
        labels = []
        for _ in range(4):
            created = submit(people.student, make_document)
            labels.append(created["version"])
            give_feedback(principal=people.dosen_1, bimbingan_id=uuid.UUID(created["id"]), status="revisi")

        assert labels == ["V1", "V2", "V3", "V4"]


class TestFeedback:
    def test_revision_request(self, people, make_document, dispatcher, notifier):
        created = submit(people.student, make_document)

        updated = give_feedback(
            principal=people.dosen_1,
            bimbingan_id=uuid.UUID(created["id"]),
            status="revisi",
            feedback="Perbaiki latar belakang",
        )

        assert updated["status"] == "revisi"
        assert updated["status_color"] == "red"
        assert updated["feedback"] == "Perbaiki latar belakang"
        assert updated["feedback_date"] is not None
        assert updated["mahasiswa"]["current_progress"] == "BAB II"

        dispatcher.wait_idle(timeout=5)
        feedback_notice = [n for n in notifier.sent if n.kind is NotificationKind.FEEDBACK]
        assert len(feedback_notice) == 1
        assert feedback_notice[0].phone == "+62 811-1111-111"
        assert feedback_notice[0].context == {
            "dosen_nama": "Dr. Andi",
            "status": "Revisi",
            "feedback": "Perbaiki latar belakang",
        }

    def test_advance_chapter_moves_progress_and_unblocks(self, people, make_document):
        created = submit(people.student, make_document)

        updated = give_feedback(
            principal=people.dosen_1, bimbingan_id=uuid.UUID(created["id"]), status="lanjut_bab"
        )

        assert updated["status"] == "lanjut_bab"
        assert updated["mahasiswa"]["current_progress"] == "BAB III"
        assert read_user(people.student.id).current_progress == "BAB III"

        again = submit(people.student, make_document, judul="Bab 3 Metodologi")
        assert again["version"] == "V2"

    def test_approval_does_not_move_progress(self, people, make_document):
        created = submit(people.student, make_document)

        give_feedback(principal=people.dosen_1, bimbingan_id=uuid.UUID(created["id"]), status="acc")

        assert read_user(people.student.id).current_progress == "BAB II"

    def test_progress_stops_at_final_step(self, make_document, caplog):
        dosen = add_user(nim_nip="NIP-X", name="Dr. X", role="dosen")
        student = add_user(
            nim_nip="NIM-X", name="Y", role="mahasiswa", current_progress="Selesai", dospem_1_id=dosen.id
        )
        created = submit(student, make_document)

        caplog.set_level(logging.INFO, logger="simta.database.core.funcs")

        give_feedback(principal=dosen, bimbingan_id=uuid.UUID(created["id"]), status="lanjut_bab")

        assert read_user(student.id).current_progress == "Selesai"
        assert not [r for r in caplog.records if r.getMessage().startswith("Progress updated")]

    def test_progress_change_is_logged(self, people, make_document, caplog):
        created = submit(people.student, make_document)
        caplog.set_level(logging.INFO, logger="simta.database.core.funcs")

        give_feedback(principal=people.dosen_1, bimbingan_id=uuid.UUID(created["id"]), status="lanjut_bab")

        updates = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Progress updated")]
        assert updates == [f"Progress updated: mahasiswa {people.student.id} -> BAB III"]

    def test_second_feedback_conflicts(self, people, make_document):
        created = submit(people.student, make_document)
        bimbingan_id = uuid.UUID(created["id"])
        give_feedback(principal=people.dosen_1, bimbingan_id=bimbingan_id, status="acc")

        with pytest.raises(ConflictError):
            give_feedback(principal=people.dosen_1, bimbingan_id=bimbingan_id, status="revisi")

        assert get_bimbingan(principal=people.dosen_1, bimbingan_id=bimbingan_id)["status"] == "acc"

    def test_concurrent_review_wins_the_race(self, people, make_document, monkeypatch, dispatcher, notifier):
        created = submit(people.student, make_document)
        bimbingan_id = uuid.UUID(created["id"])
        review = make_document(name="catatan_dosen.pdf")
        apply_feedback = BimbinganDao.applyFeedback

        def reviewed_first(self, session, target_id, **fields):
            session.query(Bimbingan).filter(Bimbingan.id == target_id).update(
                {Bimbingan.status: "acc"}, synchronize_session="fetch"
            )
            return apply_feedback(self, session, target_id, **fields)

        monkeypatch.setattr(BimbinganDao, "applyFeedback", reviewed_first)

        with pytest.raises(ConflictError) as exc_info:
            give_feedback(
                principal=people.dosen_1,
                bimbingan_id=bimbingan_id,
                status="revisi",
                feedback="Perbaiki",
                feedback_document=review,
            )

        assert exc_info.value.cleanup_paths == (review.path,)
        stored = get_bimbingan(principal=people.dosen_1, bimbingan_id=bimbingan_id)
        assert stored["status"] == "menunggu"
        assert stored["feedback"] is None
        dispatcher.wait_idle(timeout=5)
        assert not [n for n in notifier.sent if n.kind is NotificationKind.FEEDBACK]

    def test_unassigned_advisor_is_forbidden(self, people, make_document):
        created = submit(people.student, make_document)

        with pytest.raises(ForbiddenError):
            give_feedback(
                principal=people.other_dosen, bimbingan_id=uuid.UUID(created["id"]), status="acc"
            )

    def test_admin_has_no_review_override(self, people, make_document):
        created = submit(people.student, make_document)

        with pytest.raises(ForbiddenError):
            give_feedback(principal=people.admin, bimbingan_id=uuid.UUID(created["id"]), status="acc")

    def test_awaiting_is_not_a_review_outcome(self, people, make_document):
        created = submit(people.student, make_document)

        with pytest.raises(InvalidInputError):
            give_feedback(
                principal=people.dosen_1, bimbingan_id=uuid.UUID(created["id"]), status="menunggu"
            )

    def test_unknown_record(self, people):
        with pytest.raises(NotFoundError):
            give_feedback(principal=people.dosen_1, bimbingan_id=uuid.uuid4(), status="acc")

    def test_feedback_document_is_recorded(self, people, make_document):
        created = submit(people.student, make_document)
        review = make_document(name="catatan_dosen.pdf")

        updated = give_feedback(
            principal=people.dosen_1,
            bimbingan_id=uuid.UUID(created["id"]),
            status="revisi",
            feedback_document=review,
        )

        assert updated["has_feedback_file"] is True
        assert updated["feedback_file_name"] == "catatan_dosen.pdf"

    def test_progress_failure_keeps_feedback(self, people, make_document, monkeypatch):
        created = submit(people.student, make_document)
        calls = []

        def broken(self, session, student_id):
            calls.append(student_id)
            raise OperationalError("UPDATE app_user", {}, Exception("database is locked"))

        monkeypatch.setattr(UserDao, "advanceProgress", broken)

        updated = give_feedback(
            principal=people.dosen_1, bimbingan_id=uuid.UUID(created["id"]), status="lanjut_bab"
        )

        assert updated["status"] == "lanjut_bab"
        assert updated["mahasiswa"]["current_progress"] == "BAB II"
        assert len(calls) == funcs.settings.PROGRESS_RETRY_ATTEMPTS
        assert read_user(people.student.id).current_progress == "BAB II"
        stored = get_bimbingan(principal=people.dosen_1, bimbingan_id=uuid.UUID(created["id"]))
        assert stored["status"] == "lanjut_bab"

    def test_notifier_failure_does_not_reach_caller(self, people, make_document, notifier, dispatcher):
        notifier.error = RuntimeError("gateway down")
        created = submit(people.student, make_document)

        updated = give_feedback(principal=people.dosen_1, bimbingan_id=uuid.UUID(created["id"]), status="acc")

        dispatcher.wait_idle(timeout=5)
        assert updated["status"] == "acc"
        assert len(notifier.sent) == 2


class TestReplies:
    def test_participants_and_admin_can_reply(self, people, make_document):
        created = submit(people.student, make_document)
        bimbingan_id = uuid.UUID(created["id"])

        add_reply(principal=people.student, bimbingan_id=bimbingan_id, message="Sudah saya kirim, Pak")
        add_reply(principal=people.dosen_1, bimbingan_id=bimbingan_id, message="Baik, akan saya cek")
        admin_reply = add_reply(principal=people.admin, bimbingan_id=bimbingan_id, message="Dicatat")

        assert admin_reply["sender_role"] == "dosen"
        assert admin_reply["sender"]["role"] == "admin"

        thread = get_replies(principal=people.student, bimbingan_id=bimbingan_id)
        assert [r["message"] for r in thread] == ["Sudah saya kirim, Pak", "Baik, akan saya cek", "Dicatat"]
        assert [r["sender_role"] for r in thread] == ["mahasiswa", "dosen", "dosen"]

        detail = get_bimbingan(principal=people.student, bimbingan_id=bimbingan_id)
        assert len(detail["replies"]) == 3

    def test_reply_allowed_after_review(self, people, make_document):
        created = submit(people.student, make_document)
        bimbingan_id = uuid.UUID(created["id"])
        give_feedback(principal=people.dosen_1, bimbingan_id=bimbingan_id, status="acc")

        reply = add_reply(principal=people.student, bimbingan_id=bimbingan_id, message="Terima kasih")

        assert reply["message"] == "Terima kasih"

    def test_outsider_cannot_reply(self, people, make_document):
        created = submit(people.student, make_document)

        with pytest.raises(ForbiddenError):
            add_reply(principal=people.other_dosen, bimbingan_id=uuid.UUID(created["id"]), message="Halo")

    @pytest.mark.parametrize("message", ["", "   ", "x" * 2001])
    def test_message_is_validated(self, people, make_document, message):
        created = submit(people.student, make_document)

        with pytest.raises(InvalidInputError):
            add_reply(principal=people.student, bimbingan_id=uuid.UUID(created["id"]), message=message)

    def test_reply_does_not_notify(self, people, make_document, dispatcher, notifier):
        created = submit(people.student, make_document)
        dispatcher.wait_idle(timeout=5)
        before = len(notifier.sent)

        add_reply(principal=people.student, bimbingan_id=uuid.UUID(created["id"]), message="Halo")

        dispatcher.wait_idle(timeout=5)
        assert len(notifier.sent) == before


class TestReads:
    def test_listing_is_scoped_by_role(self, people, make_document):
        submit(people.student, make_document, slot="dospem_1")
        submit(people.student, make_document, slot="dospem_2")

        assert list_bimbingan(principal=people.student)["pagination"]["total"] == 2
        assert list_bimbingan(principal=people.dosen_1)["pagination"]["total"] == 1
        assert list_bimbingan(principal=people.other_dosen)["pagination"]["total"] == 0
        assert list_bimbingan(principal=people.admin)["pagination"]["total"] == 2
        assert list_bimbingan(principal=people.lonely_student)["pagination"]["total"] == 0

    def test_listing_filters(self, people, make_document):
        first = submit(people.student, make_document, slot="dospem_1")
        submit(people.student, make_document, slot="dospem_2")
        give_feedback(principal=people.dosen_1, bimbingan_id=uuid.UUID(first["id"]), status="acc")

        by_slot = list_bimbingan(principal=people.student, dosen_type="dospem_2")
        assert [b["dosen_type"] for b in by_slot["data"]] == ["dospem_2"]

        by_status = list_bimbingan(principal=people.student, status="acc")
        assert [b["id"] for b in by_status["data"]] == [first["id"]]

        by_student = list_bimbingan(principal=people.admin, mahasiswa_id=people.lonely_student.id)
        assert by_student["data"] == []

    def test_listing_pagination_newest_first(self, people, make_document):
        ids = []
        for _ in range(3):
            created = submit(people.student, make_document)
            ids.append(created["id"])
            give_feedback(principal=people.dosen_1, bimbingan_id=uuid.UUID(created["id"]), status="revisi")

        page_1 = list_bimbingan(principal=people.student, page=1, limit=2)
        page_2 = list_bimbingan(principal=people.student, page=2, limit=2)

        assert page_1["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}
        assert [b["id"] for b in page_1["data"] + page_2["data"]] == list(reversed(ids))

    def test_invalid_pagination(self, people):
        with pytest.raises(InvalidInputError):
            list_bimbingan(principal=people.student, page=0)

    def test_detail_is_scoped(self, people, make_document):
        created = submit(people.student, make_document)
        bimbingan_id = uuid.UUID(created["id"])

        assert get_bimbingan(principal=people.dosen_1, bimbingan_id=bimbingan_id)["id"] == created["id"]
        assert get_bimbingan(principal=people.admin, bimbingan_id=bimbingan_id)["id"] == created["id"]
        with pytest.raises(ForbiddenError):
            get_bimbingan(principal=people.lonely_student, bimbingan_id=bimbingan_id)
        with pytest.raises(ForbiddenError):
            get_bimbingan(principal=people.dosen_2, bimbingan_id=bimbingan_id)
        with pytest.raises(NotFoundError):
            get_bimbingan(principal=people.admin, bimbingan_id=uuid.uuid4())

    def test_pending_count_and_queue(self, people, make_document):
        first = submit(people.student, make_document)
        other = add_user(
            nim_nip="2021010003", name="Dewi", role="mahasiswa", dospem_1_id=people.dosen_1.id
        )
        second = submit(other, make_document)

        assert get_pending_count(principal=people.dosen_1) == 2
        assert [b["id"] for b in get_pending_reviews(principal=people.dosen_1)] == [first["id"], second["id"]]

        give_feedback(principal=people.dosen_1, bimbingan_id=uuid.UUID(first["id"]), status="acc")

        assert get_pending_count(principal=people.dosen_1) == 1
        assert get_pending_count(principal=people.dosen_2) == 0

    def test_pending_count_is_for_advisors(self, people):
        with pytest.raises(ForbiddenError):
            get_pending_count(principal=people.student)

    def test_download(self, people, make_document):
        created = submit(people.student, make_document)
        bimbingan_id = uuid.UUID(created["id"])

        file = get_download(principal=people.dosen_1, bimbingan_id=bimbingan_id)

        assert file["file_name"] == "bab1.pdf"
        assert file["media_type"] == "application/pdf"
        assert os.path.isfile(file["path"])

        with pytest.raises(ForbiddenError):
            get_download(principal=people.other_dosen, bimbingan_id=bimbingan_id)

    def test_download_missing_blob(self, people, make_document):
        created = submit(people.student, make_document)
        bimbingan_id = uuid.UUID(created["id"])
        os.remove(get_download(principal=people.student, bimbingan_id=bimbingan_id)["path"])

        with pytest.raises(NotFoundError):
            get_download(principal=people.student, bimbingan_id=bimbingan_id)

"""
Service-layer operations of the bimbingan (thesis mentoring) workflow.

Every operation takes the acting `Principal` explicitly and returns plain
dicts built while the session is still open. Persistence work is wrapped in
`@transactional` inner functions, which manage SQLAlchemy sessions and
transactions automatically and receive an injected `session: Session`.

Side effects that must not influence the caller-visible outcome run only
after the primary transaction has committed:

- notifications are handed to the `NotificationDispatcher` (fire-and-forget)
- the student's progress advance after a ``lanjut_bab`` review runs in its own
  transaction, retried with tenacity, and is logged when it finally fails

Errors are reported as `simta.workflow.errors.WorkflowError` subclasses.
"""

import logging
import math
from pathlib import Path
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from simta.database.config.config import settings
from simta.database.daos.bimbingan_dao import BimbinganDao
from simta.database.daos.reply_dao import ReplyDao
from simta.database.daos.user_dao import UserDao
from simta.database.entities.bimbingan import Bimbingan
from simta.database.entities.reply import Reply
from simta.database.entities.user import User
from simta.database.helpers.timeutils import utcnow
from simta.database.helpers.transactionManagement import transactional
from simta.notifications.dispatcher import get_dispatcher
from simta.notifications.whatsapp import NotificationKind
from simta.workflow.documents import PDF_MEDIA_TYPE, DocumentReference, ensure_pdf, format_file_size
from simta.workflow.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    WorkflowError,
)
from simta.workflow.principal import Principal, Role, SenderRole, parse_slot, require_active, require_role
from simta.workflow.status import SubmissionStatus, parse_status, transition

logger = logging.getLogger(__name__)

JUDUL_MIN_LENGTH = 5
JUDUL_MAX_LENGTH = 200
CATATAN_MAX_LENGTH = 1000
FEEDBACK_MAX_LENGTH = 2000
MESSAGE_MAX_LENGTH = 2000
MAX_PAGE_SIZE = 100

NOT_FOUND_MESSAGE = "Bimbingan tidak ditemukan"
NO_ACCESS_MESSAGE = "Anda tidak memiliki akses ke bimbingan ini"


# --------------------------------------------------------------------
# Serialization
# --------------------------------------------------------------------

def serialize_user(user: User | None, detailed: bool = False) -> dict | None:
    """Minimal identity of a user, with thesis fields when ``detailed``."""
    if user is None:
        return None
    data = {
        "id": str(user.id),
        "nim_nip": user.nim_nip,
        "name": user.name,
        "email": user.email,
    }
    if detailed:
        data.update(
            {
                "prodi": user.prodi,
                "judul_ta": user.judul_ta,
                "current_progress": user.current_progress,
            }
        )
    return data


def serialize_reply(reply: Reply) -> dict:
    sender = serialize_user(reply.sender)
    if sender is not None:
        sender["role"] = reply.sender.role
    return {
        "id": str(reply.id),
        "bimbingan_id": str(reply.bimbingan_id),
        "sender": sender,
        "sender_role": reply.sender_role,
        "message": reply.message,
        "created_at": reply.created_at,
    }


def serialize_bimbingan(bimbingan: Bimbingan, include_replies: bool = True) -> dict:
    """
    Plain representation of a submission with both parties populated.

    Display helpers are included: ``version`` (``V<N>``), ``status_color`` and
    ``file_size_formatted``.
    """
    status = SubmissionStatus(bimbingan.status)
    data = {
        "id": str(bimbingan.id),
        "mahasiswa": serialize_user(bimbingan.mahasiswa, detailed=True),
        "dosen": serialize_user(bimbingan.dosen),
        "dosen_type": bimbingan.dosen_type,
        "version": bimbingan.version,
        "version_number": bimbingan.version_number,
        "judul": bimbingan.judul,
        "catatan": bimbingan.catatan,
        "file_name": bimbingan.file_name,
        "file_original_name": bimbingan.file_original_name,
        "file_size": bimbingan.file_size,
        "file_size_formatted": format_file_size(bimbingan.file_size),
        "status": status.value,
        "status_color": status.color,
        "feedback": bimbingan.feedback,
        "feedback_date": bimbingan.feedback_date,
        "feedback_file_name": bimbingan.feedback_file_name,
        "has_feedback_file": bimbingan.feedback_file is not None,
        "created_at": bimbingan.created_at,
        "updated_at": bimbingan.updated_at,
    }
    if include_replies:
        data["replies"] = [serialize_reply(reply) for reply in bimbingan.replies]
    return data


# --------------------------------------------------------------------
# Validation helpers
# --------------------------------------------------------------------

def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate_judul(judul: str | None) -> str:
    judul = _clean_text(judul)
    if judul is None:
        raise InvalidInputError("Judul wajib diisi")
    if not JUDUL_MIN_LENGTH <= len(judul) <= JUDUL_MAX_LENGTH:
        raise InvalidInputError(f"Judul harus {JUDUL_MIN_LENGTH}-{JUDUL_MAX_LENGTH} karakter")
    return judul


def _validate_max_length(value: str | None, limit: int, field: str) -> str | None:
    value = _clean_text(value)
    if value is not None and len(value) > limit:
        raise InvalidInputError(f"{field} maksimal {limit} karakter")
    return value


def _validate_pagination(page: int, limit: int) -> None:
    if page < 1:
        raise InvalidInputError("Page harus bilangan positif")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise InvalidInputError(f"Limit harus antara 1-{MAX_PAGE_SIZE}")


def _load_bimbingan(session: Session, bimbingan_id: UUID) -> Bimbingan:
    bimbingan = BimbinganDao().fetchBimbinganById(session, bimbingan_id)
    if bimbingan is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return bimbingan


def _ensure_participant(principal: Principal, bimbingan: Bimbingan) -> None:
    """Student of the record, advisor of the record, or admin."""
    if principal.role is Role.ADMIN:
        return
    if principal.role is Role.MAHASISWA and bimbingan.mahasiswa_id == principal.id:
        return
    if principal.role is Role.DOSEN and bimbingan.dosen_id == principal.id:
        return
    raise ForbiddenError(NO_ACCESS_MESSAGE)


def _with_cleanup(error: WorkflowError, *documents: DocumentReference | None) -> WorkflowError:
    if not error.cleanup_paths:
        error.cleanup_paths = tuple(doc.path for doc in documents if doc is not None)
    return error


# --------------------------------------------------------------------
# Submission creation
# --------------------------------------------------------------------

@transactional
def _create_submission(
    session: Session,
    principal: Principal,
    slot,
    judul: str,
    document: DocumentReference,
    catatan: str | None,
) -> tuple[dict, dict]:
    user_dao = UserDao()
    bimbingan_dao = BimbinganDao()

    dosen_id = user_dao.fetchAdvisorAssignment(session, principal.id, slot)
    if dosen_id is None:
        raise InvalidInputError(
            f"Dosen pembimbing {slot.number} belum di-assign. "
            "Hubungi admin untuk menentukan dosen pembimbing Anda."
        )

    if bimbingan_dao.hasPendingBimbingan(session, principal.id, dosen_id):
        raise ConflictError(
            "Anda masih memiliki bimbingan yang menunggu feedback dari dosen ini. "
            "Tunggu hingga dosen memberikan feedback sebelum mengirim bimbingan baru."
        )

    version_number = bimbingan_dao.fetchMaxVersion(session, principal.id, dosen_id) + 1
    bimbingan = Bimbingan(
        mahasiswa_id=principal.id,
        dosen_id=dosen_id,
        dosen_type=slot.value,
        version_number=version_number,
        judul=judul,
        document=document,
        catatan=catatan,
    )
    try:
        bimbingan_dao.createBimbingan(session, bimbingan)
    except IntegrityError as e:
        # A concurrent submission for the same pair committed first.
        raise ConflictError(
            "Anda masih memiliki bimbingan yang menunggu feedback dari dosen ini."
        ) from e

    session.refresh(bimbingan)
    dosen = bimbingan.dosen
    mahasiswa = bimbingan.mahasiswa
    notice = {
        "phone": dosen.whatsapp,
        "mahasiswa_nama": mahasiswa.name,
        "catatan": catatan,
    }
    logger.info(
        "Bimbingan submitted: %s -> %s (%s)", mahasiswa.name, dosen.name, bimbingan.version
    )
    return serialize_bimbingan(bimbingan), notice


def create_submission(
    principal: Principal,
    dosen_type,
    judul: str,
    document: DocumentReference | None,
    catatan: str | None = None,
) -> dict:
    """
    Create a new submission for one of the student's advisors.

    Parameters
    ----------
    principal : Principal
        The acting student.
    dosen_type : str | AdvisorSlot
        ``dospem_1`` or ``dospem_2``.
    judul : str
        Title, 5-200 characters.
    document : DocumentReference | None
        The already stored upload. Must be a PDF.
    catatan : str | None
        Optional note, at most 1000 characters.

    Returns
    -------
    dict
        The created record (status ``menunggu``, ``version`` ``V<N>``) with the
        advisor's identity populated.

    Raises
    ------
    InvalidInputError
        Non-PDF document, invalid fields, or no advisor in the slot.
    ConflictError
        The pair already has a submission awaiting review.

    Notes
    -----
    Every raised `WorkflowError` lists the upload in ``cleanup_paths``.
    """
    try:
        require_role(principal, Role.MAHASISWA)
        ensure_pdf(document)
        slot = parse_slot(dosen_type)
        judul = _validate_judul(judul)
        catatan = _validate_max_length(catatan, CATATAN_MAX_LENGTH, "Catatan")
        created, notice = _create_submission(
            principal=principal, slot=slot, judul=judul, document=document, catatan=catatan
        )
    except WorkflowError as e:
        raise _with_cleanup(e, document)
    except SQLAlchemyError as e:
        logger.exception("Failed to store bimbingan for mahasiswa %s", principal.id)
        raise _with_cleanup(InternalError("Gagal menyimpan bimbingan"), document) from e

    # Detached: the returned future is intentionally not awaited.
    get_dispatcher().dispatch(
        notice["phone"],
        NotificationKind.BIMBINGAN_BARU,
        mahasiswa_nama=notice["mahasiswa_nama"],
        catatan=notice["catatan"],
    )
    return created


# --------------------------------------------------------------------
# Advisor feedback
# --------------------------------------------------------------------

@transactional
def _apply_feedback(
    session: Session,
    principal: Principal,
    bimbingan_id: UUID,
    status: SubmissionStatus,
    feedback: str | None,
    feedback_document: DocumentReference | None,
) -> tuple[dict, dict]:
    bimbingan = _load_bimbingan(session, bimbingan_id)

    if bimbingan.dosen_id != principal.id:
        raise ForbiddenError("Anda tidak memiliki akses untuk memberikan feedback ini")

    target = transition(bimbingan.status, status)

    applied = BimbinganDao().applyFeedback(
        session,
        bimbingan_id,
        status=target.value,
        feedback=feedback,
        feedback_date=utcnow(),
        feedback_file=feedback_document.path if feedback_document else None,
        feedback_file_name=(
            (feedback_document.original_name or feedback_document.file_name)
            if feedback_document
            else None
        ),
    )
    if not applied:
        # Lost the race against another review of the same record.
        session.refresh(bimbingan)
        transition(bimbingan.status, target)
        raise ConflictError("Bimbingan ini sudah direview.")

    session.refresh(bimbingan)

    mahasiswa = bimbingan.mahasiswa
    notice = {
        "phone": mahasiswa.whatsapp,
        "dosen_nama": bimbingan.dosen.name,
        "status": target.label,
        "feedback": feedback,
        "mahasiswa_id": bimbingan.mahasiswa_id,
    }
    logger.info("Feedback given: %s -> %s (%s)", bimbingan.dosen.name, mahasiswa.name, target.value)
    return serialize_bimbingan(bimbingan), notice


@retry(
    stop=stop_after_attempt(settings.PROGRESS_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=0.1, max=2),
    retry=retry_if_exception_type(SQLAlchemyError),
    reraise=True,
)
@transactional
def _advance_progress(session: Session, student_id: UUID) -> tuple[str, bool] | None:
    return UserDao().advanceProgress(session, student_id)


def advance_student_progress(student_id: UUID) -> str | None:
    """
    Move a student's progress marker one step, best effort.

    Runs in its own transaction with bounded retries. A final failure is
    logged and reported as None; it never propagates.
    """
    try:
        result = _advance_progress(student_id=student_id)
    except Exception:
        logger.exception("Progress advance failed for mahasiswa %s", student_id)
        return None
    if result is None:
        return None
    progress, changed = result
    if changed:
        logger.info("Progress updated: mahasiswa %s -> %s", student_id, progress)
    return progress


def give_feedback(
    principal: Principal,
    bimbingan_id: UUID,
    status,
    feedback: str | None = None,
    feedback_document: DocumentReference | None = None,
) -> dict:
    """
    Review a submission awaiting feedback.

    Only the submission's own advisor may review it (admins get no override).
    Status, feedback text, feedback document and feedback date are written
    in one conditional update. With ``lanjut_bab`` the student's progress
    marker advances one step afterwards; that step may fail without undoing
    the review.

    Raises
    ------
    NotFoundError, ForbiddenError
        Unknown record or principal is not its advisor.
    InvalidInputError
        Status is not ``revisi``, ``acc`` or ``lanjut_bab``; feedback too long;
        feedback document is not a PDF.
    ConflictError
        The submission was already reviewed.
    """
    try:
        require_role(principal, Role.DOSEN, Role.ADMIN)
        target = parse_status(status)
        feedback = _validate_max_length(feedback, FEEDBACK_MAX_LENGTH, "Feedback")
        if feedback_document is not None:
            ensure_pdf(feedback_document)
        updated, notice = _apply_feedback(
            principal=principal,
            bimbingan_id=bimbingan_id,
            status=target,
            feedback=feedback,
            feedback_document=feedback_document,
        )
    except WorkflowError as e:
        raise _with_cleanup(e, feedback_document)
    except SQLAlchemyError as e:
        logger.exception("Failed to store feedback for bimbingan %s", bimbingan_id)
        raise _with_cleanup(InternalError("Gagal menyimpan feedback"), feedback_document) from e

    if target is SubmissionStatus.LANJUT_BAB:
        progress = advance_student_progress(notice["mahasiswa_id"])
        if progress is not None and updated["mahasiswa"] is not None:
            updated["mahasiswa"]["current_progress"] = progress

    # Detached: the returned future is intentionally not awaited.
    get_dispatcher().dispatch(
        notice["phone"],
        NotificationKind.FEEDBACK,
        dosen_nama=notice["dosen_nama"],
        status=notice["status"],
        feedback=notice["feedback"],
    )
    return updated


# --------------------------------------------------------------------
# Reply thread
# --------------------------------------------------------------------

@transactional
def add_reply(session: Session, principal: Principal, bimbingan_id: UUID, message: str) -> dict:
    """
    Append a message to the discussion thread of a submission.

    Allowed for the record's student, its advisor, and admins, in any status.
    Admin replies are recorded with sender role ``dosen``.
    """
    require_active(principal)
    message = _clean_text(message)
    if message is None:
        raise InvalidInputError("Pesan tidak boleh kosong")
    if len(message) > MESSAGE_MAX_LENGTH:
        raise InvalidInputError(f"Pesan maksimal {MESSAGE_MAX_LENGTH} karakter")

    bimbingan = _load_bimbingan(session, bimbingan_id)
    _ensure_participant(principal, bimbingan)

    reply = ReplyDao().createReply(
        session,
        Reply(
            bimbingan_id=bimbingan.id,
            sender_id=principal.id,
            sender_role=SenderRole.for_role(principal.role).value,
            message=message,
        ),
    )
    session.refresh(reply)
    logger.info("Reply added by %s on bimbingan %s (%s)", principal.id, bimbingan.id, bimbingan.version)
    return serialize_reply(reply)


@transactional
def get_replies(session: Session, principal: Principal, bimbingan_id: UUID) -> list[dict]:
    """Thread of a submission, oldest first."""
    require_active(principal)
    bimbingan = _load_bimbingan(session, bimbingan_id)
    _ensure_participant(principal, bimbingan)
    return [serialize_reply(reply) for reply in ReplyDao().fetchRepliesByBimbinganId(session, bimbingan.id)]


# --------------------------------------------------------------------
# Reads
# --------------------------------------------------------------------

@transactional
def list_bimbingan(
    session: Session,
    principal: Principal,
    page: int = 1,
    limit: int = 10,
    status=None,
    dosen_type=None,
    mahasiswa_id: UUID | None = None,
) -> dict:
    """
    Role-scoped, paginated listing, newest first.

    - mahasiswa: own submissions, optionally filtered by ``dosen_type``
    - dosen: submissions addressed to them, optionally filtered by student
    - admin: everything, optionally filtered by student

    ``status`` filters for every role.

    Returns
    -------
    dict
        ``{"data": [...], "pagination": {"page", "limit", "total", "total_pages"}}``
    """
    require_active(principal)
    _validate_pagination(page, limit)
    filters = {"status": parse_status(status).value if status else None}

    if principal.role is Role.MAHASISWA:
        filters["mahasiswa_id"] = principal.id
        if dosen_type:
            filters["dosen_type"] = parse_slot(dosen_type).value
    elif principal.role is Role.DOSEN:
        filters["dosen_id"] = principal.id
        filters["mahasiswa_id"] = mahasiswa_id
    else:
        filters["mahasiswa_id"] = mahasiswa_id

    dao = BimbinganDao()
    total = dao.countBimbingan(session, **filters)
    records = dao.fetchBimbingan(session, offset=(page - 1) * limit, limit=limit, **filters)
    return {
        "data": [serialize_bimbingan(record) for record in records],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


@transactional
def get_bimbingan(session: Session, principal: Principal, bimbingan_id: UUID) -> dict:
    """
    A single submission with its replies.

    Students may only read their own records and advisors only records
    addressed to them.
    """
    require_active(principal)
    bimbingan = _load_bimbingan(session, bimbingan_id)
    _ensure_participant(principal, bimbingan)
    return serialize_bimbingan(bimbingan)


@transactional
def get_pending_count(session: Session, principal: Principal) -> int:
    """Number of submissions awaiting review by the requesting advisor."""
    require_role(principal, Role.DOSEN)
    return BimbinganDao().countPendingByAdvisor(session, principal.id)


@transactional
def get_pending_reviews(session: Session, principal: Principal) -> list[dict]:
    """Submissions awaiting review by the requesting advisor, oldest first."""
    require_role(principal, Role.DOSEN)
    return [
        serialize_bimbingan(record, include_replies=False)
        for record in BimbinganDao().fetchPendingReviews(session, principal.id)
    ]


@transactional
def get_download(session: Session, principal: Principal, bimbingan_id: UUID, feedback: bool = False) -> dict:
    """
    Locate the stored document of a submission for download.

    With ``feedback=True`` the advisor's feedback document is returned
    instead of the submitted one.

    Returns
    -------
    dict
        ``{"path", "file_name", "media_type"}``

    Raises
    ------
    NotFoundError
        Unknown record, no such document, or the blob is gone from storage.
    """
    require_active(principal)
    bimbingan = _load_bimbingan(session, bimbingan_id)
    _ensure_participant(principal, bimbingan)

    if feedback:
        path, file_name = bimbingan.feedback_file, bimbingan.feedback_file_name
        media_type = PDF_MEDIA_TYPE
    else:
        path = bimbingan.file_path
        file_name = bimbingan.file_original_name or bimbingan.file_name
        media_type = bimbingan.file_media_type

    if not path or not Path(path).is_file():
        raise NotFoundError("File tidak ditemukan")
    return {"path": path, "file_name": file_name, "media_type": media_type}


# --------------------------------------------------------------------
# Principals
# --------------------------------------------------------------------

@transactional
def get_principal(session: Session, user_id: UUID) -> Principal | None:
    """
    Build the `Principal` for a directory user, or None if it does not exist.
    """
    user = UserDao().fetchUserById(session, user_id)
    if user is None:
        return None
    return Principal(id=user.id, role=Role(user.role), status=user.status, name=user.name)

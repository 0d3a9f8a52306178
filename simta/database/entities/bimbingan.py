"""
Bimbingan ORM Model
===================

The ``Bimbingan`` ORM model is one mentoring submission: a student sends a
document to one of their two advisors, the advisor reviews it once.

Table
-----
- ``bimbingan``

Key Features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Foreign keys to the student (``mahasiswa_id``) and advisor (``dosen_id``)
- Per (student, advisor) version number, rendered as ``V<N>``
- Submitted document metadata and optional feedback document
- Review status, feedback text and feedback timestamp

Integrity
~~~~~~~~~
- ``uq_bimbingan_pair_version``: a version number is never reused for a pair.
- ``uq_bimbingan_single_pending``: partial unique index, at most one
  ``menunggu`` row per (student, advisor). Two racing submissions cannot both
  commit; the loser surfaces as a conflict.
"""

from simta.database.config.connection_engine import declarativeBase
from simta.database.helpers.timeutils import utcnow
from simta.workflow.documents import DocumentReference
from simta.workflow.status import SubmissionStatus
from sqlalchemy import VARCHAR, TEXT, DateTime, ForeignKey, Index, Integer, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid import UUID
import uuid
from datetime import datetime

_PENDING_PREDICATE = text(f"status = '{SubmissionStatus.MENUNGGU.value}'")


class Bimbingan(declarativeBase):
    """
    ORM model for the `bimbingan` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    mahasiswa_id : UUID
        Submitting student (`app_user.id`). Never reassigned.
    dosen_id : UUID
        Receiving advisor (`app_user.id`), resolved from ``dosen_type`` at creation.
    dosen_type : str
        ``dospem_1`` or ``dospem_2``.
    version_number : int
        N of the ``V<N>`` label, per (student, advisor).
    judul, catatan : str
        Title and optional note from the student.
    file_* : str
        Submitted document metadata.
    status : str
        One of ``menunggu``, ``revisi``, ``acc``, ``lanjut_bab``.
    feedback, feedback_date, feedback_file, feedback_file_name
        Set once, together with the status leaving ``menunggu``.
    """

    __tablename__ = "bimbingan"
    __table_args__ = (
        UniqueConstraint("mahasiswa_id", "dosen_id", "version_number", name="uq_bimbingan_pair_version"),
        Index(
            "uq_bimbingan_single_pending",
            "mahasiswa_id",
            "dosen_id",
            unique=True,
            sqlite_where=_PENDING_PREDICATE,
            postgresql_where=_PENDING_PREDICATE,
        ),
        Index("ix_bimbingan_dosen_status_created", "dosen_id", "status", "created_at"),
        Index("ix_bimbingan_mahasiswa_type_created", "mahasiswa_id", "dosen_type", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    """Primary key (UUID)."""

    mahasiswa_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)
    """Submitting student."""

    dosen_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)
    """Receiving advisor."""

    dosen_type: Mapped[str] = mapped_column(VARCHAR(10), nullable=False)
    """Advisor slot the submission targets."""

    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    """Monotonic per (student, advisor) version number."""

    judul: Mapped[str] = mapped_column(VARCHAR(200), nullable=False)
    """Submission title."""

    catatan: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    """Optional note from the student."""

    file_name: Mapped[str] = mapped_column(TEXT, nullable=False)
    file_path: Mapped[str] = mapped_column(TEXT, nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    file_original_name: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    file_media_type: Mapped[str] = mapped_column(VARCHAR(100), nullable=False)

    status: Mapped[str] = mapped_column(VARCHAR(20), nullable=False, default=SubmissionStatus.MENUNGGU.value, index=True)
    """Review status."""

    feedback: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    """Advisor feedback text."""

    feedback_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    """When the review happened."""

    feedback_file: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    """Storage locator of the optional feedback document."""

    feedback_file_name: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    """Original name of the optional feedback document."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    mahasiswa = relationship("User", foreign_keys=[mahasiswa_id])
    dosen = relationship("User", foreign_keys=[dosen_id])
    replies = relationship("Reply", back_populates="bimbingan", order_by="Reply.created_at")

    def __init__(
        self,
        mahasiswa_id: UUID,
        dosen_id: UUID,
        dosen_type: str,
        version_number: int,
        judul: str,
        document: DocumentReference,
        catatan: str | None = None,
        bimbingan_id: UUID | None = None,
    ):
        """
        Initialize a new submission in status ``menunggu``.

        Parameters
        ----------
        mahasiswa_id, dosen_id : UUID
            The (student, advisor) pair.
        dosen_type : str
            ``dospem_1`` or ``dospem_2``.
        version_number : int
            N of the ``V<N>`` label.
        judul : str
            Title.
        document : DocumentReference
            The submitted PDF.
        catatan : str | None
            Optional note.
        """
        self.id = bimbingan_id or uuid.uuid4()
        self.mahasiswa_id = mahasiswa_id
        self.dosen_id = dosen_id
        self.dosen_type = dosen_type
        self.version_number = version_number
        self.judul = judul
        self.catatan = catatan
        self.file_name = document.file_name
        self.file_path = document.path
        self.file_size = document.size
        self.file_original_name = document.original_name
        self.file_media_type = document.media_type
        self.status = SubmissionStatus.MENUNGGU.value
        self.created_at = utcnow()
        self.updated_at = self.created_at

    @property
    def version(self) -> str:
        """Sequence label, e.g. ``V3``."""
        return f"V{self.version_number}"

    def __str__(self) -> str:
        return (
            f"Bimbingan: id:{self.id}, "
            f"mahasiswa_id: {self.mahasiswa_id}, "
            f"dosen_id: {self.dosen_id}, "
            f"version: {self.version}, "
            f"status: {self.status}"
        )

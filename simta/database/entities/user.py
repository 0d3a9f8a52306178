"""
User ORM Model
==============

The ``User`` ORM model is the directory record of every principal in SIMTA:
students (mahasiswa), advisors (dosen) and admins. It maps to the
``app_user`` table.

Only the fields the bimbingan workflow reads or writes live here. Credentials
and profile management belong to the identity and directory services.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Role and account status (``aktif`` / ``nonaktif``)
- Student-only fields: thesis progress marker and two advisor slots
- WhatsApp number used for notifications
"""

from simta.database.config.connection_engine import declarativeBase
from simta.database.helpers.timeutils import utcnow
from simta.workflow.progress import INITIAL_PROGRESS
from sqlalchemy import VARCHAR, TEXT, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime


class User(declarativeBase):
    """
    ORM model for the `app_user` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    nim_nip : str
        Student number (NIM) or staff number (NIP). Unique.
    name : str
        Display name.
    role : str
        One of ``mahasiswa``, ``dosen``, ``admin``.
    status : str
        ``aktif`` or ``nonaktif``.
    current_progress : str | None
        Thesis progress marker (students only).
    dospem_1_id / dospem_2_id : UUID | None
        Assigned first and second advisor (students only).
    whatsapp : str | None
        Phone number used for WhatsApp notifications.
    """

    __tablename__ = "app_user"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    """Primary key. UUID of the user."""

    nim_nip: Mapped[str] = mapped_column(VARCHAR(20), nullable=False, unique=True)
    """NIM for students, NIP for lecturers."""

    name: Mapped[str] = mapped_column(VARCHAR(100), nullable=False)
    """Display name."""

    email: Mapped[str | None] = mapped_column(VARCHAR(255), nullable=True)

    role: Mapped[str] = mapped_column(VARCHAR(20), nullable=False, index=True)
    """Role of the user (mahasiswa, dosen, admin)."""

    status: Mapped[str] = mapped_column(VARCHAR(20), nullable=False, default="aktif")
    """Account status. Only ``aktif`` principals may act on the workflow."""

    prodi: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    """Study programme (students only)."""

    judul_ta: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    """Thesis title (students only)."""

    current_progress: Mapped[str | None] = mapped_column(VARCHAR(20), nullable=True)
    """Progress marker, advanced only by a ``lanjut_bab`` review."""

    dospem_1_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=True, index=True)
    """First advisor slot."""

    dospem_2_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=True, index=True)
    """Second advisor slot."""

    whatsapp: Mapped[str | None] = mapped_column(VARCHAR(30), nullable=True)
    """WhatsApp number (08xxx or 628xxx)."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __init__(
        self,
        nim_nip: str,
        name: str,
        role: str,
        status: str = "aktif",
        email: str | None = None,
        prodi: str | None = None,
        judul_ta: str | None = None,
        current_progress: str | None = None,
        dospem_1_id: UUID | None = None,
        dospem_2_id: UUID | None = None,
        whatsapp: str | None = None,
        user_id: UUID | None = None,
    ):
        """
        Initialize a new User object.

        Students without an explicit ``current_progress`` start at ``BAB I``.
        """
        self.id = user_id or uuid.uuid4()
        self.nim_nip = nim_nip
        self.name = name
        self.role = role
        self.status = status
        self.email = email
        self.prodi = prodi
        self.judul_ta = judul_ta
        if current_progress is None and role == "mahasiswa":
            current_progress = INITIAL_PROGRESS
        self.current_progress = current_progress
        self.dospem_1_id = dospem_1_id
        self.dospem_2_id = dospem_2_id
        self.whatsapp = whatsapp

    def __str__(self) -> str:
        return f"User: id:{self.id}, nim_nip: {self.nim_nip}, role: {self.role}"

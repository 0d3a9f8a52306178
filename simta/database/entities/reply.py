"""
Reply ORM Model
===============

The ``Reply`` ORM model is a comment in the discussion thread of a
bimbingan. Replies are append-only: the workflow never edits or deletes them.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Foreign key to ``bimbingan.id`` (``bimbingan_id``)
- Sender and the sender role captured at write time
- Timezone-aware ``created_at`` used as the thread order
"""

from simta.database.config.connection_engine import declarativeBase
from simta.database.helpers.timeutils import utcnow
from sqlalchemy import VARCHAR, TEXT, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid import UUID
import uuid
from datetime import datetime


class Reply(declarativeBase):
    """
    ORM model for the `reply` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    bimbingan_id : UUID
        Owning submission.
    sender_id : UUID
        Author (`app_user.id`).
    sender_role : str
        ``mahasiswa`` or ``dosen`` (admins are recorded as ``dosen``).
    message : str
        Reply text.
    created_at : datetime
        Creation time, thread order key.
    """

    __tablename__ = "reply"
    __table_args__ = (
        Index("ix_reply_bimbingan_created", "bimbingan_id", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    """Primary key. UUID of the reply."""

    bimbingan_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("bimbingan.id"), nullable=False)
    """Submission this reply belongs to."""

    sender_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False, index=True)
    """Author of the reply."""

    sender_role: Mapped[str] = mapped_column(VARCHAR(20), nullable=False)
    """Role of the author at write time."""

    message: Mapped[str] = mapped_column(TEXT, nullable=False)
    """Reply text (cannot be null)."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    """Creation time. Defaults to current UTC time."""

    bimbingan = relationship("Bimbingan", back_populates="replies")
    sender = relationship("User")

    def __init__(
        self,
        bimbingan_id: UUID,
        sender_id: UUID,
        sender_role: str,
        message: str,
        reply_id: UUID | None = None,
        created_at: datetime | str | None = None,
    ):
        """
        Initialize a new Reply object.

        Parameters
        ----------
        created_at : datetime | str | None
            Creation time; accepts a datetime or ISO8601 string. Defaults to now.
        """
        self.id = reply_id or uuid.uuid4()
        self.bimbingan_id = bimbingan_id
        self.sender_id = sender_id
        self.sender_role = sender_role
        self.message = message
        if isinstance(created_at, str):
            self.created_at = datetime.fromisoformat(created_at)
        else:
            self.created_at = created_at or utcnow()

    def __str__(self) -> str:
        return (
            f"Reply: id:{self.id}, "
            f"bimbingan_id: {self.bimbingan_id}, "
            f"sender_role: {self.sender_role}, "
            f"message: {self.message}"
        )

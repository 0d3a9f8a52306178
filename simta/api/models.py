"""
Pydantic models used for request/response validation and API data contracts.

Each class defines the structure of data expected in API endpoints, ensuring
validation and automatic OpenAPI schema generation. Response models mirror the
dicts produced by `simta.database.core.funcs`.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ReplyCreate(BaseModel):
    """
    Body of ``POST /api/bimbingan/{id}/reply``.
    """
    message: str = Field(..., min_length=1, max_length=2000, description="Reply text.", examples=["Terima kasih, Pak."])
    """The reply text, 1-2000 characters."""


class UserSummary(BaseModel):
    """
    Minimal identity of a student or advisor attached to a record.
    """
    id: str
    """Directory id of the user."""
    nim_nip: str
    """Student (NIM) or staff (NIP) number."""
    name: str
    """Display name."""
    email: Optional[str] = None
    """Contact email, if known."""
    role: Optional[str] = None
    """Role, only present on reply senders."""
    prodi: Optional[str] = None
    """Study programme (students)."""
    judul_ta: Optional[str] = None
    """Thesis title (students)."""
    current_progress: Optional[str] = None
    """Progress marker (students), e.g. ``BAB III``."""


class ReplyOut(BaseModel):
    """
    One message in the discussion thread of a bimbingan.
    """
    id: str
    bimbingan_id: str
    sender: Optional[UserSummary]
    sender_role: str
    """``mahasiswa`` or ``dosen`` (admins are recorded as ``dosen``)."""
    message: str
    created_at: datetime


class BimbinganOut(BaseModel):
    """
    A mentoring submission as returned by the API.
    """
    id: str
    mahasiswa: Optional[UserSummary]
    dosen: Optional[UserSummary]
    dosen_type: str
    """``dospem_1`` or ``dospem_2``."""
    version: str
    """Version label, ``V<N>``."""
    version_number: int
    judul: str
    catatan: Optional[str] = None
    file_name: str
    file_original_name: Optional[str] = None
    file_size: Optional[int] = None
    file_size_formatted: str
    status: str
    """``menunggu``, ``revisi``, ``acc`` or ``lanjut_bab``."""
    status_color: str
    feedback: Optional[str] = None
    feedback_date: Optional[datetime] = None
    feedback_file_name: Optional[str] = None
    has_feedback_file: bool = False
    created_at: datetime
    updated_at: datetime
    replies: Optional[List[ReplyOut]] = None
    """Thread in chronological order; omitted in the pending review queue."""


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class BimbinganResponse(BaseModel):
    """
    Envelope for a single bimbingan.
    """
    success: bool = True
    message: Optional[str] = None
    data: BimbinganOut


class BimbinganListResponse(BaseModel):
    """
    Envelope for a page of bimbingan.
    """
    success: bool = True
    message: Optional[str] = None
    data: List[BimbinganOut]
    pagination: Pagination


class ReplyResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: ReplyOut


class ReplyListResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: List[ReplyOut]


class PendingCount(BaseModel):
    count: int
    """Submissions awaiting the advisor's review."""


class PendingCountResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: PendingCount


class ErrorResponse(BaseModel):
    """
    Body returned for every workflow error.
    """
    success: bool = False
    message: str
    """Human readable reason."""

"""
FastAPI Router — Bimbingan (Thesis Mentoring)
=============================================

Purpose
-------
Defines the HTTP API under ``/api/bimbingan``:
- Listing (role-scoped, paginated) and detail with replies
- Submission upload (multipart) by students
- Advisor feedback (multipart, optional feedback document)
- Reply thread
- Pending count and pending review queue for advisors
- Document download

Key Notes
---------
- Every route resolves the acting principal with `get_current_principal`
  (Bearer header or ``token`` cookie).
- Routes are thin: they persist uploads, call `simta.database.core.funcs`
  and wrap the result in ``{"success", "message", "data"}``.
- `WorkflowError` is not handled here; the app-level handler in
  `simta.main` maps it to HTTP and discards rejected uploads.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse

from simta.api.models import (
    BimbinganListResponse,
    BimbinganResponse,
    PendingCountResponse,
    ReplyCreate,
    ReplyListResponse,
    ReplyResponse,
)
from simta.api.uploads import persist_upload
from simta.api.utils import get_current_principal
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
from simta.workflow.principal import Principal

router = APIRouter(prefix="/api/bimbingan", tags=["bimbingan"])
"""Creates the FastAPI router in which we define the bimbingan routes"""


@router.get("/", response_model=BimbinganListResponse)
def list_route(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = None,
    dosen_type: Optional[str] = None,
    mahasiswa_id: Optional[UUID] = None,
    principal: Principal = Depends(get_current_principal),
):
    """List bimbingan visible to the caller, newest first.

    Query:
        page, limit: pagination (defaults 1 and 10)
        status: ``menunggu`` | ``revisi`` | ``acc`` | ``lanjut_bab``
        dosen_type: advisor slot filter (students)
        mahasiswa_id: student filter (advisors, admins)
    """
    result = list_bimbingan(
        principal=principal,
        page=page,
        limit=limit,
        status=status,
        dosen_type=dosen_type,
        mahasiswa_id=mahasiswa_id,
    )
    return {"success": True, "message": "Data bimbingan berhasil diambil", **result}


@router.get("/pending-count", response_model=PendingCountResponse)
def pending_count_route(principal: Principal = Depends(get_current_principal)):
    """Number of submissions awaiting the calling advisor's review."""
    count = get_pending_count(principal=principal)
    return {"success": True, "message": "Jumlah bimbingan pending", "data": {"count": count}}


@router.get("/pending-reviews")
def pending_reviews_route(principal: Principal = Depends(get_current_principal)):
    """Submissions awaiting the calling advisor's review, oldest first."""
    return {"success": True, "message": "Bimbingan menunggu review", "data": get_pending_reviews(principal=principal)}


@router.get("/download/{bimbingan_id}")
def download_route(
    bimbingan_id: UUID,
    feedback: bool = False,
    principal: Principal = Depends(get_current_principal),
):
    """Download the submitted document, or the feedback document with ``?feedback=true``."""
    file = get_download(principal=principal, bimbingan_id=bimbingan_id, feedback=feedback)
    return FileResponse(file["path"], media_type=file["media_type"], filename=file["file_name"])


@router.get("/{bimbingan_id}", response_model=BimbinganResponse)
def detail_route(bimbingan_id: UUID, principal: Principal = Depends(get_current_principal)):
    """A single bimbingan with its replies."""
    data = get_bimbingan(principal=principal, bimbingan_id=bimbingan_id)
    return {"success": True, "message": "Detail bimbingan", "data": data}


@router.get("/{bimbingan_id}/replies", response_model=ReplyListResponse)
def replies_route(bimbingan_id: UUID, principal: Principal = Depends(get_current_principal)):
    """Discussion thread, oldest first."""
    data = get_replies(principal=principal, bimbingan_id=bimbingan_id)
    return {"success": True, "message": "Balasan bimbingan", "data": data}


@router.post("/", response_model=BimbinganResponse, status_code=201)
def create_route(
    judul: str = Form(...),
    dosen_type: str = Form(...),
    catatan: Optional[str] = Form(None),
    file: UploadFile = File(...),
    principal: Principal = Depends(get_current_principal),
):
    """Submit a new bimbingan document (students).

    Multipart form:
        judul: title, 5-200 characters
        dosen_type: ``dospem_1`` | ``dospem_2``
        catatan: optional note
        file: the PDF document
    """
    document = persist_upload(file, principal.id)
    data = create_submission(
        principal=principal,
        dosen_type=dosen_type,
        judul=judul,
        document=document,
        catatan=catatan,
    )
    return {
        "success": True,
        "message": "Bimbingan berhasil dikirim. Menunggu feedback dari dosen.",
        "data": data,
    }


@router.put("/{bimbingan_id}/feedback", response_model=BimbinganResponse)
def feedback_route(
    bimbingan_id: UUID,
    status: str = Form(...),
    feedback: Optional[str] = Form(None),
    feedback_file: Optional[UploadFile] = File(None),
    principal: Principal = Depends(get_current_principal),
):
    """Review a bimbingan (its advisor only).

    Multipart form:
        status: ``revisi`` | ``acc`` | ``lanjut_bab``
        feedback: optional text, at most 2000 characters
        feedback_file: optional PDF
    """
    document = persist_upload(feedback_file, principal.id) if feedback_file is not None and feedback_file.filename else None
    data = give_feedback(
        principal=principal,
        bimbingan_id=bimbingan_id,
        status=status,
        feedback=feedback,
        feedback_document=document,
    )
    return {"success": True, "message": "Feedback berhasil diberikan", "data": data}


@router.post("/{bimbingan_id}/reply", response_model=ReplyResponse, status_code=201)
def reply_route(
    bimbingan_id: UUID,
    body: ReplyCreate,
    principal: Principal = Depends(get_current_principal),
):
    """Add a message to the discussion thread."""
    data = add_reply(principal=principal, bimbingan_id=bimbingan_id, message=body.message)
    return {"success": True, "message": "Balasan berhasil dikirim", "data": data}

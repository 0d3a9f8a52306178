"""
API Package — FastAPI Router • Models • JWT Utils • Uploads
===========================================================

Mission
-------
This package defines the HTTP interface of the bimbingan workflow: routing,
principal resolution from JWTs, request/response validation and upload
storage. Business rules live in `simta.database.core.funcs`; this layer only
translates between HTTP and those service functions.

Contents
--------
- fast_api
    FastAPI router under ``/api/bimbingan``:
      • List (role-scoped, paginated), detail, replies
      • Create submission (multipart upload)
      • Advisor feedback (multipart, optional feedback PDF)
      • Reply, pending count, pending review queue, download

- models
    Pydantic data contracts:
      • ReplyCreate (request body)
      • UserSummary, ReplyOut, BimbinganOut, Pagination
      • Response envelopes ``{success, message, data}``

- utils
    JWT helpers and the principal dependency:
      • create_access_token(payload) — issues signed JWTs with exp
      • verify_token(token) — validates JWTs and extracts the subject
      • get_current_principal — Bearer header or ``token`` cookie

- uploads
    Upload storage:
      • persist_upload(UploadFile, owner_id) -> DocumentReference
      • discard_upload(path) — removes blobs the workflow rejected

Operational Notes
-----------------
- Uploads land under ``UPLOAD_DIR/bimbingan``; rejected ones are deleted by
  the app-level `WorkflowError` handler.
- Security: never log tokens.
"""

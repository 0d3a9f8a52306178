"""
Upload storage for bimbingan documents.

Key Functions
-------------
- safe_file_name  : Reduce a client file name to ``[A-Za-z0-9._]``.
- persist_upload  : Save an UploadFile under ``UPLOAD_DIR/bimbingan``, return a
                    `DocumentReference`.
- discard_upload  : Delete a stored blob the workflow rejected.

Stored names follow ``<userId>_<epoch micros>_<safe name>``. The size limit
(``MAX_FILE_SIZE_MB``) is enforced while copying; an oversized upload is
removed before the error is raised.
"""

import logging
import os
import re
import time

from fastapi import UploadFile

from simta.database.config.config import settings
from simta.workflow.documents import DocumentReference
from simta.workflow.errors import InvalidInputError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def safe_file_name(filename: str | None) -> str:
    return re.sub(r"[^a-zA-Z0-9.]", "_", filename or "dokumen")


def upload_dir() -> str:
    return os.path.join(settings.UPLOAD_DIR, "bimbingan")


def persist_upload(f: UploadFile, owner_id) -> DocumentReference:
    """
    Save an uploaded file to the server.

    Args:
        f (UploadFile): The file uploaded by the client.
        owner_id: Id of the uploading user, used as file name prefix.

    Returns:
        DocumentReference: Stored name, path, declared MIME type and size.

    Raises:
        InvalidInputError: The file exceeds ``MAX_FILE_SIZE_MB``.
    """
    directory = upload_dir()
    os.makedirs(directory, exist_ok=True)

    new_name = f"{owner_id}_{time.time_ns() // 1000}_{safe_file_name(f.filename)}"
    dest = os.path.join(directory, new_name)
    limit = settings.MAX_FILE_SIZE_MB * 1024 * 1024

    size = 0
    with open(dest, "wb") as out:
        while True:
            chunk = f.file.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > limit:
                break
            out.write(chunk)

    if size > limit:
        discard_upload(dest)
        raise InvalidInputError(f"Ukuran file maksimal {settings.MAX_FILE_SIZE_MB}MB")

    return DocumentReference(
        file_name=new_name,
        path=dest,
        media_type=(f.content_type or "").lower(),
        size=size,
        original_name=f.filename or new_name,
    )


def discard_upload(path: str) -> None:
    """Delete a stored upload; a missing file is not an error."""
    try:
        os.remove(path)
        logger.info("Discarded upload %s", path)
    except FileNotFoundError:
        logger.debug("Upload %s already gone", path)

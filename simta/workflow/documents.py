"""
Document references.

A `DocumentReference` describes a blob the upload layer already stored. The
workflow never reads the blob; it only checks the declared media type and
keeps the locator.
"""

import math

from pydantic import BaseModel, ConfigDict, Field

from simta.workflow.errors import InvalidInputError

PDF_MEDIA_TYPE = "application/pdf"
PDF_MEDIA_TYPES = frozenset({PDF_MEDIA_TYPE, "application/x-pdf"})


class DocumentReference(BaseModel):
    """Immutable metadata of an uploaded file."""

    model_config = ConfigDict(frozen=True)

    file_name: str = Field(..., description="Stored file name.", examples=["6650_1717171717_bab1.pdf"])
    path: str = Field(..., description="Storage locator of the blob.", examples=["uploads/bimbingan/6650_1717171717_bab1.pdf"])
    media_type: str = Field(..., description="Declared MIME type.", examples=["application/pdf"])
    size: int | None = Field(None, ge=0, description="Size in bytes.")
    original_name: str | None = Field(None, description="Client supplied file name.")

    @property
    def is_pdf(self) -> bool:
        media_type = (self.media_type or "").split(";", 1)[0].strip().lower()
        return media_type in PDF_MEDIA_TYPES


def ensure_pdf(document: DocumentReference | None) -> DocumentReference:
    """
    Reject missing or non-PDF documents.

    The raised error lists the blob path in ``cleanup_paths`` so the caller
    can delete the orphaned upload before answering.
    """
    if document is None:
        raise InvalidInputError("File dokumen wajib diunggah")
    if not document.is_pdf:
        raise InvalidInputError(
            "Hanya file PDF yang diperbolehkan", cleanup_paths=(document.path,)
        )
    return document


def format_file_size(size: int | str | None) -> str:
    """Human readable size, e.g. ``1.50 MB``."""
    if size is None or size == "":
        return "Unknown"
    try:
        size = int(size)
    except (TypeError, ValueError):
        return str(size)
    if size == 0:
        return "0 Bytes"
    units = ("Bytes", "KB", "MB", "GB")
    exponent = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    return f"{size / 1024 ** exponent:.2f} {units[exponent]}"

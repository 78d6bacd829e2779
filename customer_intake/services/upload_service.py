"""Customer photo upload checks and storage.

Checks run in a fixed order: the transfer happened, size limit, sniffed
content type, file extension. The stored name is generated here and never
derived from the client's filename.
"""

from __future__ import annotations

import io
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path, PurePath

import structlog
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from customer_intake.core.errors import StorageError, UploadRejected, UploadRejectReason

logger = structlog.get_logger()

MAX_FILE_SIZE = 5242880  # 5MB
ALLOWED_EXTENSIONS = ("jpg", "jpeg")
ALLOWED_MIME_TYPES = ("image/jpeg",)

_READ_CHUNK = 65_536

# Multi-picture JPEGs (camera MPF files) are plain JPEG on the wire
_JPEG_FORMATS = frozenset({"JPEG", "MPO"})


class UploadStatus(str, Enum):
    OK = "ok"
    NO_FILE = "no_file"  # nothing chosen, not an error
    FAILED = "failed"  # transfer broke off


@dataclass
class IncomingFile:
    filename: str
    data: bytes = b""
    status: UploadStatus = UploadStatus.OK
    size: int | None = None

    def __post_init__(self) -> None:
        if self.size is None:
            self.size = len(self.data)


def sniff_mime_type(data: bytes) -> str | None:
    """Determine the MIME type from the file bytes, ignoring client metadata.

    Only the image header is parsed; pixel data is never decoded.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError):
        return None
    if not fmt:
        return None
    fmt = fmt.upper()
    if fmt in _JPEG_FORMATS:
        return "image/jpeg"
    return Image.MIME.get(fmt)


def file_extension(filename: str) -> str:
    return PurePath(filename).suffix.lstrip(".").lower()


def validate_upload(incoming: IncomingFile, *, max_bytes: int = MAX_FILE_SIZE) -> str | None:
    """Validate an upload attempt.

    Returns None when no file was chosen, otherwise the lower-cased extension
    to store the file under. Raises UploadRejected with the first failed check.
    """
    if incoming.status == UploadStatus.NO_FILE:
        return None
    if incoming.status != UploadStatus.OK:
        raise UploadRejected(UploadRejectReason.UPLOAD_FAILED, "File upload failed.")

    if incoming.size > max_bytes:
        mb = max_bytes // (1024 * 1024)
        raise UploadRejected(
            UploadRejectReason.FILE_TOO_LARGE,
            f"File size exceeds maximum allowed size of {mb}MB.",
        )

    mime_type = sniff_mime_type(incoming.data)
    if mime_type not in ALLOWED_MIME_TYPES:
        logger.info("upload_content_type_rejected", sniffed=mime_type)
        raise UploadRejected(UploadRejectReason.INVALID_CONTENT_TYPE, "Only JPEG images are allowed.")

    extension = file_extension(incoming.filename)
    if extension not in ALLOWED_EXTENSIONS:
        raise UploadRejected(
            UploadRejectReason.INVALID_EXTENSION,
            "Invalid file extension. Only JPG/JPEG allowed.",
        )

    return extension


def generate_secure_filename(extension: str, now: datetime | None = None) -> str:
    # Example: customer_20260116_093012_9f86d081884c7d65.jpg
    if now is None:
        now = datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"customer_{stamp}_{secrets.token_hex(8)}.{extension}"


def store_upload(
    incoming: IncomingFile,
    extension: str,
    *,
    upload_dir: str | Path,
    path_prefix: str = "uploads",
) -> str:
    """Write a validated upload and return the path to persist as image_path."""
    directory = Path(upload_dir)
    try:
        directory.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("upload_dir_create_failed", upload_dir=str(directory), error=str(exc))
        raise StorageError("Failed to store uploaded file. Please try again later.") from exc

    filename = generate_secure_filename(extension)
    destination = directory / filename
    try:
        # "xb" refuses to overwrite an existing file
        with open(destination, "xb") as fh:
            fh.write(incoming.data)
    except OSError as exc:
        logger.error("upload_write_failed", destination=str(destination), error=str(exc))
        raise StorageError("Failed to store uploaded file. Please try again later.") from exc

    logger.info("upload_stored", filename=filename, size=incoming.size)
    return f"{path_prefix.rstrip('/')}/{filename}"


def discard_upload(image_path: str, *, upload_dir: str | Path) -> bool:
    """Best-effort removal of a stored upload that no customer will reference.

    Only the final path component is used, so the file is always looked up
    inside ``upload_dir``. Returns True when a file was removed.
    """
    filename = PurePath(image_path).name
    if not filename.startswith("customer_"):
        return False
    target = Path(upload_dir) / filename
    try:
        target.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("upload_discard_failed", filename=filename, error=str(exc))
        return False
    logger.info("upload_discarded", filename=filename)
    return True


async def read_upload(upload: UploadFile | None, *, max_bytes: int = MAX_FILE_SIZE) -> IncomingFile:
    """Turn a multipart UploadFile into an IncomingFile.

    Reads in chunks and stops one chunk past the limit so an oversized upload
    is never fully buffered; the reported size is then only a lower bound,
    which is enough for the size check to reject it.
    """
    if upload is None or not upload.filename:
        return IncomingFile(filename="", status=UploadStatus.NO_FILE)

    chunks: list[bytes] = []
    total = 0
    try:
        while chunk := await upload.read(_READ_CHUNK):
            total += len(chunk)
            if total > max_bytes:
                break
            chunks.append(chunk)
    except OSError as exc:
        logger.warning("upload_read_failed", error=str(exc))
        return IncomingFile(filename=upload.filename, status=UploadStatus.FAILED)

    return IncomingFile(filename=upload.filename, data=b"".join(chunks), size=total)

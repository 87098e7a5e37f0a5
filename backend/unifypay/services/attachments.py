"""Embedded file handling for create/update payloads."""
import base64
import binascii
import re
import time
from typing import Iterable, Optional
from urllib.parse import quote
from unifypay.config import settings
from unifypay.errors import ValidationError
from unifypay.models import Attachment

DATA_URL_PATTERN = re.compile(r"^data:([A-Za-z\-+/]+);base64,(.+)$", re.DOTALL)
WHITESPACE = re.compile(r"\s+")


def default_file_name(stem: str) -> str:
    """``<stem>_<epoch millis>``, used when the client sends no filename."""
    return f"{stem}_{int(time.time() * 1000)}"


def decode_data_url(
    data_url: str,
    file_name: Optional[str] = None,
    stem: str = "attachment",
    max_bytes: Optional[int] = None,
    allowed_types: Optional[Iterable[str]] = None,
) -> Attachment:
    """
    Validate a ``data:<mime>;base64,<payload>`` string.

    Args:
        data_url: The embedded file
        file_name: Name to store; generated from ``stem`` when missing
        stem: Prefix for generated names
        max_bytes: Limit on the decoded size (defaults to settings)
        allowed_types: Accepted MIME types (defaults to settings)

    Returns:
        Attachment holding the base64 payload and its metadata

    Raises:
        ValidationError: malformed data URL, disallowed type, bad base64 or
            oversized file
    """
    max_bytes = settings.max_attachment_bytes if max_bytes is None else max_bytes
    allowed = set(settings.allowed_attachment_types if allowed_types is None else allowed_types)

    match = DATA_URL_PATTERN.match(data_url.strip())
    if not match:
        raise ValidationError("Invalid file format. Expected a base64 data URL.")
    mime_type, payload = match.groups()
    payload = WHITESPACE.sub("", payload)
    if not payload:
        raise ValidationError("Invalid file format. Expected a base64 data URL.")

    if mime_type not in allowed:
        raise ValidationError("File type not allowed. Allowed types: JPG, PNG, PDF, TXT")

    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Error processing file: {e}") from e

    if len(raw) > max_bytes:
        limit = f"{max_bytes // (1024 * 1024)}MB" if max_bytes >= 1024 * 1024 else f"{max_bytes} bytes"
        raise ValidationError(f"File is too large. Maximum {limit} allowed.")

    return Attachment(
        name=file_name or default_file_name(stem),
        mime_type=mime_type,
        size=len(raw),
        data=payload,
    )


def content_disposition(file_name: str) -> str:
    """
    ``Content-Disposition`` value for a download of ``file_name``.

    Header values must be Latin-1, so the plain ``filename`` carries an ASCII
    rendering and the exact name travels as RFC 5987 ``filename*``.
    """
    fallback = file_name.encode("ascii", "ignore").decode().replace('"', "").replace("\\", "")
    fallback = "".join(ch for ch in fallback if ch.isprintable()) or "attachment"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name, safe='')}"

from datetime import datetime, timezone, timedelta
from urllib.parse import quote
from jose import jwt

from ..core.config import get_settings
from ..models.rfp import Document

settings = get_settings()


def create_download_token(document: Document, expires_in: int = None) -> str:
    expires_in = expires_in or settings.DOWNLOAD_URL_EXPIRE_SECONDS
    expire = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    return jwt.encode(
        {
            "sub": str(document.id),
            "path": document.file_path,
            "exp": expire,
            "type": "download",
        },
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def create_signed_download_url(document: Document, expires_in: int = None) -> str:
    """Short-lived URL to the document's blob; the token is checked by the blob gateway."""
    token = create_download_token(document, expires_in)
    path = quote(document.file_path.lstrip("/"))
    return f"{settings.BLOB_BASE_URL.rstrip('/')}/{path}?token={token}"

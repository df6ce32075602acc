"""Upload storage on the local filesystem, laid out as <root>/<property_id>/<file>."""
import logging
import re
import shutil
import uuid
from pathlib import Path
from typing import Optional, Union

from zentro.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"
GENERAL_DIR = "general"
ALLOWED_CONTENT_PREFIXES = ("image/", "video/")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str) -> str:
    name = Path(filename or "").name
    name = _UNSAFE_CHARS.sub("-", name).strip(".-")
    return name or "file"


class UploadStorage:
    """Stores uploaded media under a root directory."""

    def __init__(self, root: Union[str, Path], max_bytes: int = 10 * 1024 * 1024):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _dir_for(self, property_id: Optional[int]) -> Path:
        return self.root / (str(property_id) if property_id is not None else GENERAL_DIR)

    def check(self, content_type: Optional[str], size: int) -> None:
        """
        Reject uploads that are not images/videos or that exceed the size cap.

        Raises:
            ValidationError: with a message naming the problem
        """
        if not content_type or not content_type.startswith(ALLOWED_CONTENT_PREFIXES):
            raise ValidationError("Only image and video files are allowed")
        if size > self.max_bytes:
            raise ValidationError(f"File too large. Maximum size is {self.max_bytes} bytes")
        if size == 0:
            raise ValidationError("Uploaded file is empty")

    def save(
        self,
        property_id: Optional[int],
        filename: str,
        data: bytes,
        content_type: Optional[str] = None
    ) -> str:
        """Write the file and return its path relative to the root."""
        self.check(content_type, len(data))

        target_dir = self._dir_for(property_id)
        target_dir.mkdir(parents=True, exist_ok=True)

        stored_name = f"{uuid.uuid4().hex[:12]}-{sanitize_filename(filename)}"
        (target_dir / stored_name).write_bytes(data)

        relative = f"{target_dir.name}/{stored_name}"
        logger.info(f"Stored upload {relative} ({len(data)} bytes)")
        return relative

    def public_url(self, relative_path: str) -> str:
        return f"{PUBLIC_PREFIX}/{relative_path.lstrip('/')}"

    def delete_file(self, property_id: int, filename: str) -> None:
        path = self._dir_for(property_id) / sanitize_filename(filename)
        if not path.is_file():
            raise NotFoundError("File not found")
        path.unlink()
        logger.info(f"Deleted upload {path}")

    def remove_property_dir(self, property_id: int) -> bool:
        """Remove a property's upload directory. Returns False if it did not exist."""
        path = self._dir_for(property_id)
        if not path.exists():
            return False
        shutil.rmtree(path)
        logger.info(f"Removed upload directory {path}")
        return True

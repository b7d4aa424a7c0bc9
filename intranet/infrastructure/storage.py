"""Local disk storage for uploaded attachments."""

import os
import secrets
import time
from pathlib import Path
from typing import Optional

import structlog

from intranet.config import get_settings

logger = structlog.get_logger(__name__)


def extension_of(name: str) -> str:
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


def unique_filename(original_name: str) -> str:
    """<epoch millis>_<random>.<ext>; never derived from user-controlled path parts."""
    ext = extension_of(os.path.basename(original_name))
    stem = f"{int(time.time() * 1000)}_{secrets.token_hex(6)}"
    return f"{stem}.{ext}" if ext else stem


class LocalFileStorage:
    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or get_settings().UPLOAD_DIR)

    def ensure_root(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def save(self, content: bytes, original_name: str) -> tuple[str, str]:
        """Write content under a generated name; returns (filename, path)."""
        filename = unique_filename(original_name)
        path = self.ensure_root() / filename
        with open(path, "wb") as f:
            f.write(content)
        logger.info("File stored", filename=filename, size=len(content))
        return filename, str(path)

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def delete(self, path: str) -> bool:
        try:
            Path(path).unlink()
        except FileNotFoundError:
            logger.warning("File already missing on disk", path=path)
            return False
        return True

    def check_writable(self) -> None:
        """Create, write and remove a scratch file; raises OSError when the directory is unusable."""
        marker = self.ensure_root() / f".health_{secrets.token_hex(4)}"
        marker.write_text("ok")
        marker.unlink()

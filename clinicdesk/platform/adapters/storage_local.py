import logging
import os
from pathlib import Path
from urllib.parse import quote
from clinicdesk.platform.ports.object_storage import ObjectStoragePort
from clinicdesk.core.config import settings

log = logging.getLogger(__name__)

class LocalFilesystemStorage(ObjectStoragePort):
    """Stores archived documents under LOCAL_STORAGE_ROOT."""

    def __init__(self, root: str | None = None):
        self.root = Path(root or settings.LOCAL_STORAGE_ROOT).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        parts = [p for p in key.strip("/").split("/") if p not in ("", ".", "..")]
        if not parts:
            raise ValueError("empty storage key")
        return self.root.joinpath(*parts)

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        log.debug("stored %s (%d bytes, %s)", path, len(data), content_type)

    def get_bytes(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def presign_download(self, key: str, expires_seconds: int = 900, filename: str | None = None) -> str:
        # no signing locally; the path is served by whatever fronts the media root
        return f"file://{quote(str(self._path(key)))}"

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            os.remove(path)

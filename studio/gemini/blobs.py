"""
Local blob store for downloaded artifacts.

Generated videos are fetched from a credential-bearing provider URI; callers
only ever see the ``blob:`` reference handed out here.
"""

import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from studio.utils.errors import NotFoundError
from studio.utils.logger import get_logger

logger = get_logger(__name__)

BLOB_SCHEME = "blob:"


@dataclass
class _BlobEntry:
    mime_type: str
    data: Optional[bytes] = None
    path: Optional[Path] = None


class LocalBlobStore:
    """In-memory or directory-backed registry of locally addressable blobs"""

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory).expanduser() if directory else None
        self._entries: Dict[str, _BlobEntry] = {}

        if self.directory:
            self.directory.mkdir(parents=True, exist_ok=True)

    def create_object_url(self, data: bytes, mime_type: str) -> str:
        """Register bytes and return a ``blob:`` reference to them"""
        blob_id = uuid.uuid4().hex
        url = f"{BLOB_SCHEME}{blob_id}"

        if self.directory:
            extension = mimetypes.guess_extension(mime_type) or ".bin"
            path = self.directory / f"{blob_id}{extension}"
            path.write_bytes(data)
            self._entries[url] = _BlobEntry(mime_type=mime_type, path=path)
        else:
            self._entries[url] = _BlobEntry(mime_type=mime_type, data=data)

        logger.debug(f"Created {url} ({mime_type}, {len(data)} bytes)")
        return url

    def _entry(self, url: str) -> _BlobEntry:
        entry = self._entries.get(url)
        if entry is None:
            raise NotFoundError(f"Unknown blob reference: {url}")
        return entry

    def read(self, url: str) -> bytes:
        entry = self._entry(url)
        if entry.path is not None:
            return entry.path.read_bytes()
        return entry.data or b""

    def mime_type(self, url: str) -> str:
        return self._entry(url).mime_type

    def save(self, url: str, destination: Union[str, Path]) -> Path:
        """Write a blob to ``destination`` (the UI's download action)"""
        target = Path(destination).expanduser()
        target.write_bytes(self.read(url))
        return target

    def revoke(self, url: str) -> None:
        """Forget a blob; unknown references are ignored"""
        entry = self._entries.pop(url, None)
        if entry is not None and entry.path is not None:
            entry.path.unlink(missing_ok=True)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

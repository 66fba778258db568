"""Transient display handles for generated images.

A handle lets a viewer show or save an image straight after generation
without the caller choosing a storage location. Each handle is a `file://`
URI pointing into a private temp folder. Handles are registered in an
ownership table (artifact id -> handle) and must be revoked explicitly when
the artifact is discarded or replaced; `close()` revokes whatever is left.
"""

import tempfile
import uuid
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from loguru import logger


class PreviewStore:
    """Creates, resolves and revokes transient display handles."""

    def __init__(self):
        self.temp_dir = tempfile.TemporaryDirectory(prefix="midiator-preview-", ignore_cleanup_errors=True)
        self._handles = {}
        self._owners = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __len__(self):
        return len(self._handles)

    @property
    def active_handles(self):
        return list(self._handles.values())

    def create(self, data, owner=None, suffix=".png"):
        """Registers image data and returns a handle for it.

        Args:
            data (bytes): The encoded image.
            owner (Hashable, optional): The id of the artifact owning the
                handle. A fresh id is generated when omitted. Registering a
                second handle for the same owner revokes the first one.
            suffix (str, optional): The file suffix of the backing file.

        Returns:
            str: The handle, a `file://` URI.
        """
        if self.temp_dir is None:
            raise RuntimeError("PreviewStore is closed")
        if owner is None:
            owner = uuid.uuid4().hex
        if owner in self._handles:
            self.revoke(self._handles[owner])

        path = Path(self.temp_dir.name) / f"{uuid.uuid4().hex}{suffix}"
        path.write_bytes(data)
        handle = path.as_uri()
        self._handles[owner] = handle
        self._owners[handle] = owner
        return handle

    def path(self, handle):
        """Returns the local path behind a handle."""
        return Path(url2pathname(urlparse(handle).path))

    def open(self, handle):
        """Returns the bytes behind a live handle.

        Raises:
            KeyError: If the handle was never created here or has been revoked.
        """
        if handle not in self._owners:
            raise KeyError(f"Unknown or revoked handle: {handle}")
        return self.path(handle).read_bytes()

    def revoke(self, handle):
        """Releases a handle. Revoking an unknown handle does nothing.

        Returns:
            bool: True if a live handle was released.
        """
        if handle not in self._owners:
            return False
        del self._handles[self._owners.pop(handle)]
        self.path(handle).unlink(missing_ok=True)
        return True

    def revoke_all(self):
        for handle in list(self._handles.values()):
            self.revoke(handle)

    def close(self):
        if self.temp_dir is None:
            return
        if self._handles:
            logger.debug(f"Revoking {len(self._handles)} preview handles")
        self.revoke_all()
        self.temp_dir.cleanup()
        self.temp_dir = None

# store.py -- Blob store client interface
# Copyright (C) 2026 Blobwalk contributors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# Blobwalk is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Blob store client interface.

A blob store holds named byte strings ("blobs") in buckets. Stores may be
eventually consistent: a plain GET right after a PUT can return the previous
content. Stores that version their blobs hand out a version id on every PUT;
passing it back on GET pins the read to that version.
"""

__all__ = [
    "BlobStore",
    "MemoryBlobStore",
    "PendingPut",
]

from collections.abc import Callable
from io import BytesIO
from types import TracebackType
from typing import BinaryIO

from .errors import NotFoundError


class PendingPut(BytesIO):
    """Writable buffer that is uploaded when it is closed.

    ``on_complete`` is called with the version id the store returned. Leaving
    a ``with`` block through an exception, or dropping the buffer without
    closing it, aborts the upload.
    """

    def __init__(
        self,
        store: "BlobStore",
        bucket: str,
        key: str,
        on_complete: Callable[[str | None], None] | None = None,
    ) -> None:
        super().__init__()
        self._store = store
        self._bucket = bucket
        self._key = key
        self._on_complete = on_complete
        self._done = False

    def __del__(self) -> None:
        # Never upload a buffer that was dropped without being closed.
        if not self._done:
            self.abort()

    def abort(self) -> None:
        """Discard the buffered data without uploading it."""
        self._done = True
        super().close()

    def close(self) -> None:
        """Upload the buffered data and close the buffer."""
        if self._done:
            return
        self._done = True
        data = self.getvalue()
        super().close()
        version = self._store.put(self._bucket, self._key, data)
        if self._on_complete is not None:
            self._on_complete(version)

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.abort()
        else:
            self.close()


class BlobStore:
    """A bucketed key-value blob store."""

    def get(
        self, bucket: str, key: str, version: str | None = None
    ) -> tuple[BinaryIO, str | None]:
        """Open a blob for reading.

        Args:
          bucket: Bucket to read from
          key: Key of the blob
          version: Version to read; the latest visible one if None
        Returns: Tuple with a file-like object and the version that was read
        Raises:
          NotFoundError: if there is no such blob
        """
        raise NotImplementedError(self.get)

    def put(
        self, bucket: str, key: str, data: bytes, timeout: float | None = None
    ) -> str | None:
        """Store a blob.

        Args:
          bucket: Bucket to write to
          key: Key of the blob
          data: Contents
          timeout: Optional timeout for the upload, in seconds
        Returns: Version id assigned by the store, or None if unversioned
        """
        raise NotImplementedError(self.put)

    def begin_put(
        self,
        bucket: str,
        key: str,
        on_complete: Callable[[str | None], None] | None = None,
    ) -> PendingPut:
        """Start writing a blob incrementally.

        Args:
          bucket: Bucket to write to
          key: Key of the blob
          on_complete: Called with the new version once the blob is stored
        Returns: File-like object; the blob is stored when it is closed
        """
        return PendingPut(self, bucket, key, on_complete)

    def delete(self, bucket: str, key: str) -> None:
        """Delete a blob. Deleting a missing blob is not an error."""
        raise NotImplementedError(self.delete)

    def list(self, bucket: str, prefix: str) -> set[str]:
        """List the blobs below a key prefix.

        Args:
          bucket: Bucket to list
          prefix: Key prefix, without trailing slash
        Returns: Names relative to ``prefix + "/"``
        """
        raise NotImplementedError(self.list)


class MemoryBlobStore(BlobStore):
    """Blob store that keeps all blobs in memory.

    Args:
      versioned: Whether writes get version ids
      lag: Number of writes an unversioned read may trail behind, to mimic
        an eventually consistent store
    """

    def __init__(self, versioned: bool = True, lag: int = 0) -> None:
        self.versioned = versioned
        self.lag = lag
        self._buckets: dict[str, dict[str, list[tuple[str, bytes]]]] = {}
        self._counter = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}(versioned={self.versioned!r}, lag={self.lag!r})"

    def _next_version(self) -> str:
        self._counter += 1
        return f"v{self._counter}"

    def get(
        self, bucket: str, key: str, version: str | None = None
    ) -> tuple[BinaryIO, str | None]:
        try:
            history = self._buckets[bucket][key]
        except KeyError as exc:
            raise NotFoundError(bucket, key) from exc
        if version is not None and self.versioned:
            for v, data in history:
                if v == version:
                    return BytesIO(data), v
            raise NotFoundError(bucket, key)
        v, data = history[max(0, len(history) - 1 - self.lag)]
        return BytesIO(data), (v if self.versioned else None)

    def put(
        self, bucket: str, key: str, data: bytes, timeout: float | None = None
    ) -> str | None:
        version = self._next_version()
        self._buckets.setdefault(bucket, {}).setdefault(key, []).append(
            (version, bytes(data))
        )
        if not self.versioned:
            return None
        return version

    def delete(self, bucket: str, key: str) -> None:
        self._buckets.get(bucket, {}).pop(key, None)

    def list(self, bucket: str, prefix: str) -> set[str]:
        start = prefix + "/"
        return {
            key[len(start) :]
            for key in self._buckets.get(bucket, {})
            if key.startswith(start)
        }

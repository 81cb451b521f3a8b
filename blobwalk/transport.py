# transport.py -- Transport over non-git-aware blob stores
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

"""Transport over non-git-aware blob stores.

The remote repository is a bare repository laid out as blobs under a key
prefix: ``<prefix>/HEAD``, ``<prefix>/refs/...``, ``<prefix>/objects/...``.
The store only needs to support GET, PUT, DELETE and listing by prefix, so
any S3-like service works. Because such stores can be eventually
consistent, the versions returned by writes are tracked in a manifest
(``<prefix>.manifest``) and used to pin later reads.

Concurrent pushing over this transport is not supported. Multiple
concurrent push operations may leave the repository, or the manifest, in a
confused state.
"""

__all__ = [
    "S3_SCHEME",
    "BlobStoreDatabase",
    "BlobStoreTransport",
    "S3Location",
    "WalkConnection",
    "parse_s3_url",
]

from configparser import ConfigParser
from dataclasses import dataclass, field
from io import BytesIO
from types import TracebackType
from typing import BinaryIO, NamedTuple
from urllib.parse import unquote, urlparse

from .database import FileStream, RemoteObjectDatabase
from .keys import normalize_prefix, resolve_key
from .log_utils import getLogger
from .manifest import MANIFEST_EXT, VersionManifest
from .packs import list_packs
from .refs import Ref, RefResolver
from .store import BlobStore

S3_SCHEME = "amazon-s3"
OBJECTS_DIR = "objects"

logger = getLogger(__name__)


class S3Location(NamedTuple):
    """Parsed ``amazon-s3://`` URL."""

    user: str
    password: str | None
    bucket: str
    key_prefix: str


def parse_s3_url(url: str) -> S3Location:
    """Parse an ``amazon-s3://<user>[:<pass>]@<bucket>/<path>`` URL.

    Raises:
      ValueError: if the URL uses another scheme or lacks the user, bucket
        or path
    """
    parsed = urlparse(url)
    if parsed.scheme != S3_SCHEME:
        raise ValueError(f"Not an {S3_SCHEME} URL: {url!r}")
    userinfo, sep, bucket = parsed.netloc.rpartition("@")
    if not sep or not userinfo:
        raise ValueError(f"Missing user in {url!r}")
    if not bucket:
        raise ValueError(f"Missing bucket in {url!r}")
    user, sep, password = userinfo.partition(":")
    key_prefix = normalize_prefix(unquote(parsed.path))
    if not key_prefix:
        raise ValueError(f"Missing path in {url!r}")
    return S3Location(
        unquote(user), unquote(password) if sep else None, bucket, key_prefix
    )


@dataclass
class WalkConnection:
    """An object database together with the refs it advertises."""

    database: "BlobStoreDatabase"
    refs: dict[bytes, Ref] = field(default_factory=dict)

    def get_refs(self) -> dict[bytes, Ref]:
        """Return the advertised refs."""
        return self.refs

    def close(self) -> None:
        """Close the underlying database."""
        self.database.close()


class BlobStoreTransport:
    """A session against one repository in a blob store.

    The version manifest is loaded when the transport is created and written
    back, if anything changed, when it is closed.

    Args:
      store: Blob store holding the repository
      bucket: Bucket holding the repository
      key_prefix: Key prefix of the repository; slashes around it are ignored
      flush_timeout: Timeout for writing the manifest on close
    Raises:
      ManifestLoadError: if the manifest exists but cannot be read
    """

    def __init__(
        self,
        store: BlobStore,
        bucket: str,
        key_prefix: str,
        flush_timeout: float | None = None,
    ) -> None:
        self.store = store
        self.bucket = bucket
        self.key_prefix = normalize_prefix(key_prefix)
        self.flush_timeout = flush_timeout
        self._closed = False
        self._manifest = VersionManifest()
        self._manifest.load(store, bucket, self.manifest_key)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.store!r}, {self.bucket!r}, "
            f"{self.key_prefix!r})"
        )

    @classmethod
    def from_url(
        cls,
        url: str,
        conf: ConfigParser | None = None,
        store: BlobStore | None = None,
    ) -> "BlobStoreTransport":
        """Open a transport for an ``amazon-s3://`` URL.

        Args:
          url: URL of the repository
          conf: Configuration; loaded from the default location if needed
          store: Blob store to use instead of one built from configuration
        """
        from .config import get_flush_timeout, get_store_from_conf, load_conf

        location = parse_s3_url(url)
        flush_timeout = None
        if store is None or conf is not None:
            if conf is None:
                conf = load_conf()
            flush_timeout = get_flush_timeout(conf)
        if store is None:
            assert conf is not None
            store = get_store_from_conf(conf, location.user, location.password)
        return cls(store, location.bucket, location.key_prefix, flush_timeout)

    @property
    def uri(self) -> str:
        """URL of the repository, without credentials."""
        return f"{S3_SCHEME}://{self.bucket}/{self.key_prefix}"

    @property
    def manifest_key(self) -> str:
        """Key of the version manifest, next to the repository."""
        return self.key_prefix + MANIFEST_EXT

    @property
    def manifest(self) -> VersionManifest:
        """The version manifest of this session."""
        return self._manifest

    def version_of(self, key: str) -> str | None:
        """Return the version of a key last written by this client."""
        return self._manifest.get(key)

    def track_key(self, key: str, version: str | None) -> None:
        """Record the version a key was written as."""
        self._manifest.track(key, version)

    def untrack_key(self, key: str) -> None:
        """Forget the version of a deleted key."""
        self._manifest.untrack(key)

    def _open_database(self) -> "BlobStoreDatabase":
        return BlobStoreDatabase(self, self.key_prefix + "/" + OBJECTS_DIR)

    def open_fetch(self) -> WalkConnection:
        """Open the repository for fetching."""
        db = self._open_database()
        return WalkConnection(db, db.read_advertised_refs())

    def open_push(self) -> WalkConnection:
        """Open the repository for pushing."""
        db = self._open_database()
        return WalkConnection(db, db.read_advertised_refs())

    def close(self) -> None:
        """Close the session, writing the manifest back if it changed."""
        if self._closed:
            return
        self._closed = True
        if self._manifest.dirty:
            self._manifest.flush(
                self.store, self.bucket, self.manifest_key, self.flush_timeout
            )

    def __enter__(self) -> "BlobStoreTransport":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class BlobStoreDatabase(RemoteObjectDatabase):
    """Object database of a repository stored in a blob store.

    Args:
      transport: Session the database belongs to
      objects_key: Key of the ``objects`` directory
    """

    def __init__(self, transport: BlobStoreTransport, objects_key: str) -> None:
        self.transport = transport
        self.objects_key = objects_key

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.uri!r})"

    @property
    def uri(self) -> str:
        return f"{S3_SCHEME}://{self.transport.bucket}/{self.objects_key}"

    def resolve_key(self, path: str) -> str:
        """Return the store key of a path relative to this database."""
        return resolve_key(self.objects_key, path)

    def list_keys(self, path: str) -> set[str]:
        return self.transport.store.list(self.transport.bucket, self.resolve_key(path))

    def get_pack_names(self) -> set[str]:
        return list_packs(
            self.transport.store, self.transport.bucket, self.resolve_key("pack")
        )

    def open(self, path: str) -> FileStream:
        key = self.resolve_key(path)
        f, _ = self.transport.store.get(
            self.transport.bucket, key, self.transport.version_of(key)
        )
        if isinstance(f, BytesIO):
            return FileStream(f, len(f.getvalue()))
        return FileStream(f, -1)

    def write_file(self, path: str, data: bytes) -> None:
        key = self.resolve_key(path)
        version = self.transport.store.put(self.transport.bucket, key, data)
        self.transport.track_key(key, version)

    def begin_write(self, path: str) -> BinaryIO:
        key = self.resolve_key(path)

        def on_complete(version: str | None) -> None:
            self.transport.track_key(key, version)

        return self.transport.store.begin_put(self.transport.bucket, key, on_complete)

    def delete_file(self, path: str) -> None:
        key = self.resolve_key(path)
        self.transport.store.delete(self.transport.bucket, key)
        self.transport.untrack_key(key)

    def open_alternate(self, location: str) -> "BlobStoreDatabase":
        return BlobStoreDatabase(self.transport, self.resolve_key(location))

    def read_advertised_refs(self) -> dict[bytes, Ref]:
        """Read the refs of the repository this database belongs to."""
        return RefResolver(self).read_advertised_refs()

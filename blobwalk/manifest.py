# manifest.py -- Per-key version tracking
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

"""Per-key version tracking.

A store that is only eventually consistent may answer a read of a key that
was just written with the previous content. Every write on a versioned store
returns a version id though, and reads can be pinned to it. The manifest
remembers the last version this client wrote for each key, and is itself
stored next to the repository (``<prefix>.manifest``) so that later
sessions pin their reads as well.

Only the manifest key needs strong consistency from the store. No locking is
done on it: two sessions pushing to the same repository at the same time can
lose each other's entries.
"""

__all__ = ["MANIFEST_EXT", "VersionManifest"]

from collections.abc import Iterator
from io import BytesIO

from .errors import ManifestFlushError, ManifestLoadError, NotFoundError
from .log_utils import getLogger
from .properties import read_properties, write_properties
from .store import BlobStore

MANIFEST_EXT = ".manifest"

logger = getLogger(__name__)


class VersionManifest:
    """Mapping from store keys to the version last written by this client."""

    def __init__(self) -> None:
        self._versions: dict[str, str] = {}
        self._dirty = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._versions!r})"

    def __contains__(self, key: object) -> bool:
        return key in self._versions

    def __len__(self) -> int:
        return len(self._versions)

    def __iter__(self) -> Iterator[str]:
        return iter(self._versions)

    @property
    def dirty(self) -> bool:
        """Whether any entry changed since the manifest was loaded."""
        return self._dirty

    def get(self, key: str) -> str | None:
        """Return the tracked version of a key, if any."""
        return self._versions.get(key)

    def items(self) -> list[tuple[str, str]]:
        """Return (key, version) pairs, sorted by key."""
        return sorted(self._versions.items())

    def track(self, key: str, version: str | None) -> None:
        """Record the version a key was written as.

        Args:
          key: Store key that was written
          version: Version returned by the store; None is ignored
        """
        if version is None:
            return
        if self._versions.get(key) != version:
            self._versions[key] = version
            self._dirty = True

    def untrack(self, key: str) -> None:
        """Forget about a key, e.g. because it was deleted."""
        if self._versions.pop(key, None) is not None:
            self._dirty = True

    def load(self, store: BlobStore, bucket: str, key: str) -> None:
        """Load the manifest from the store.

        A missing manifest is not an error; the repository simply has not
        been written to through a versioned store yet.

        Raises:
          ManifestLoadError: if the manifest exists but cannot be read
        """
        try:
            f, _ = store.get(bucket, key)
        except NotFoundError:
            logger.debug("No version manifest at %s, starting empty", key)
            return
        except Exception as exc:
            logger.error("Failed to load version manifest file %s", key)
            raise ManifestLoadError(key) from exc
        try:
            with f:
                versions = read_properties(f)
        except (OSError, ValueError) as exc:
            raise ManifestLoadError(key) from exc
        self._versions.update(versions)
        logger.debug("Loaded %d versions from %s", len(versions), key)

    def flush(
        self,
        store: BlobStore,
        bucket: str,
        key: str,
        timeout: float | None = None,
    ) -> bool:
        """Write the manifest back to the store if it changed.

        Failures are logged rather than raised: the data the manifest
        describes has already been written by then.

        Returns: Whether the manifest was written
        """
        if not self._dirty:
            return False
        f = BytesIO()
        write_properties(f, self._versions)
        try:
            store.put(bucket, key, f.getvalue(), timeout=timeout)
        except Exception as exc:
            error = ManifestFlushError(key)
            error.__cause__ = exc
            logger.error("%s", error, exc_info=exc)
            return False
        logger.debug("Wrote %d versions to %s", len(self._versions), key)
        return True

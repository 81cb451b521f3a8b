# errors.py -- Blobwalk-related exception classes
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

"""Blobwalk-related exception classes."""

__all__ = [
    "CyclicRefError",
    "InvalidPathError",
    "ManifestFlushError",
    "ManifestLoadError",
    "MalformedRefError",
    "NotFoundError",
    "PackedRefsError",
    "TransportError",
]

from collections.abc import Sequence


class NotFoundError(Exception):
    """Indicates that a key does not exist in the blob store."""

    def __init__(self, bucket: str, key: str) -> None:
        """Initialize a NotFoundError.

        Args:
            bucket: Bucket that was queried.
            key: Key that was not found.
        """
        self.bucket = bucket
        self.key = key
        Exception.__init__(self, f"{key} not found in bucket {bucket}")


class TransportError(Exception):
    """A store or network operation failed for a reason other than not-found."""

    def __init__(self, uri: str | None, message: str) -> None:
        """Initialize a TransportError.

        Args:
            uri: Location of the remote the operation was running against.
            message: Description of the failed operation.
        """
        self.uri = uri
        self.message = message
        if uri:
            Exception.__init__(self, f"{uri}: {message}")
        else:
            Exception.__init__(self, message)


class MalformedRefError(Exception):
    """A ref blob exists but does not hold an object id or a symref."""

    def __init__(self, name: bytes, content: bytes | None = None) -> None:
        """Initialize a MalformedRefError.

        Args:
            name: Name of the ref.
            content: Content of the ref blob, if any was read.
        """
        self.name = name
        self.content = content
        if not content:
            message = f"empty ref: {name.decode('utf-8', 'replace')}"
        else:
            message = (
                f"bad ref {name.decode('utf-8', 'replace')}: "
                f"{content.decode('utf-8', 'replace')}"
            )
        Exception.__init__(self, message)


class CyclicRefError(MalformedRefError):
    """There is a loop between one or more symbolic refs."""

    def __init__(self, name: bytes, path: Sequence[bytes]) -> None:
        """Initialize a CyclicRefError.

        Args:
            name: Ref that was reached a second time.
            path: Refs resolved on the way there, outermost first.
        """
        self.name = name
        self.content = None
        self.path = tuple(path)
        chain = b" -> ".join((*self.path, name)).decode("utf-8", "replace")
        Exception.__init__(self, f"symbolic ref loop: {chain}")


class ManifestLoadError(Exception):
    """The version manifest could not be read."""

    def __init__(self, key: str) -> None:
        """Initialize a ManifestLoadError.

        Args:
            key: Key of the manifest blob.
        """
        self.key = key
        Exception.__init__(self, f"Failed to load version manifest {key}")


class ManifestFlushError(Exception):
    """The version manifest could not be written back."""

    def __init__(self, key: str) -> None:
        """Initialize a ManifestFlushError.

        Args:
            key: Key of the manifest blob.
        """
        self.key = key
        Exception.__init__(self, f"Error writing the manifest file {key}")


class InvalidPathError(ValueError):
    """A relative path climbs above the root of the key space."""

    def __init__(self, base: str, path: str) -> None:
        """Initialize an InvalidPathError.

        Args:
            base: Key prefix the path was resolved against.
            path: The offending relative path.
        """
        self.base = base
        self.path = path
        ValueError.__init__(self, f"{path!r} escapes key prefix {base!r}")


class PackedRefsError(ValueError):
    """Indicates an error parsing a packed-refs file."""

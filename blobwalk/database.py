# database.py -- Remote object databases for walking transports
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

"""Remote object databases for walking transports.

A walking fetch or push does not talk to a git server; it reads and writes
the files of a bare repository one by one. :class:`RemoteObjectDatabase` is
the set of file operations such an engine needs, rooted at the repository's
``objects`` directory. Paths may climb out of it with ``../``, which is how
refs (``../refs/heads/main``) and ``../packed-refs`` are reached.
"""

__all__ = [
    "INFO_ALTERNATES",
    "INFO_PACKS",
    "PACKED_REFS",
    "FileStream",
    "RemoteObjectDatabase",
]

from collections.abc import Iterable, Mapping
from typing import BinaryIO, NamedTuple

from .errors import NotFoundError
from .keys import ROOT_DIR
from .log_utils import getLogger
from .packs import write_info_packs
from .refs import PACKED_REFS, write_packed_refs

INFO_ALTERNATES = "info/alternates"
INFO_PACKS = "info/packs"

logger = getLogger(__name__)


class FileStream(NamedTuple):
    """An open remote file."""

    stream: BinaryIO
    # Length in bytes, or -1 if unknown.
    length: int


class RemoteObjectDatabase:
    """Files of a remote repository, as seen by a walking transport."""

    @property
    def uri(self) -> str:
        """Location of this object database, for messages."""
        raise NotImplementedError("uri")

    def list_keys(self, path: str) -> set[str]:
        """List the files below a directory, relative to it."""
        raise NotImplementedError(self.list_keys)

    def open(self, path: str) -> FileStream:
        """Open a remote file for reading.

        Raises:
          NotFoundError: if the file does not exist
        """
        raise NotImplementedError(self.open)

    def write_file(self, path: str, data: bytes) -> None:
        """Create or replace a remote file."""
        raise NotImplementedError(self.write_file)

    def begin_write(self, path: str) -> BinaryIO:
        """Create or replace a remote file incrementally.

        The file is stored when the returned object is closed.
        """
        raise NotImplementedError(self.begin_write)

    def delete_file(self, path: str) -> None:
        """Delete a remote file."""
        raise NotImplementedError(self.delete_file)

    def open_alternate(self, location: str) -> "RemoteObjectDatabase":
        """Open an alternate object database, relative to this one."""
        raise NotImplementedError(self.open_alternate)

    def get_pack_names(self) -> set[str]:
        """Return the names of the complete packs in this database."""
        raise NotImplementedError(self.get_pack_names)

    def get_alternates(self) -> list["RemoteObjectDatabase"] | None:
        """Open the alternates of this database.

        Returns: List of databases, or None if there is no alternates file
        """
        try:
            return self.read_alternates(INFO_ALTERNATES)
        except NotFoundError:
            return None

    def open_reader(self, path: str) -> BinaryIO:
        """Open a remote file for reading line by line."""
        return self.open(path).stream

    def read_alternates(self, path: str) -> list["RemoteObjectDatabase"]:
        """Read a file listing alternate object databases, one per line."""
        alternates = []
        with self.open_reader(path) as f:
            for line in f:
                location = line.rstrip(b"\r\n").decode("utf-8")
                if not location:
                    continue
                if location.endswith("/"):
                    location = location[:-1]
                logger.debug("%s has alternate %s", self.uri, location)
                alternates.append(self.open_alternate(location))
        return alternates

    def write_ref(self, name: bytes, sha: bytes) -> None:
        """Write a loose ref."""
        self.write_file(ROOT_DIR + name.decode("utf-8"), sha + b"\n")

    def delete_ref(self, name: bytes) -> None:
        """Delete a loose ref."""
        self.delete_file(ROOT_DIR + name.decode("utf-8"))

    def write_info_packs(self, pack_names: Iterable[str]) -> None:
        """Write ``info/packs``, for clients that cannot list directories."""
        self.write_file(INFO_PACKS, write_info_packs(pack_names))

    def write_packed_refs(
        self,
        packed_refs: Mapping[bytes, bytes],
        peeled_refs: Mapping[bytes, bytes] | None = None,
    ) -> None:
        """Replace ``packed-refs``."""
        with self.begin_write(PACKED_REFS) as f:
            write_packed_refs(f, packed_refs, peeled_refs)

    def close(self) -> None:
        """Release any resources held by this database."""

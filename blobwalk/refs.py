# refs.py -- Ref resolution on top of a blob store
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

"""Ref resolution on top of a blob store.

Refs are stored the way a bare repository stores them on disk: one small
blob per loose ref holding either an object id or ``ref: <other name>``,
plus an optional ``packed-refs`` blob. Since the store can list keys, loose
refs are found by listing ``refs/`` rather than by reading ``info/refs``.
"""

__all__ = [
    "HEADREF",
    "PACKED_REFS",
    "SYMREF",
    "ObjectIdRef",
    "RefResolver",
    "Storage",
    "SymbolicRef",
    "read_packed_refs_with_peeled",
    "valid_hexsha",
    "write_packed_refs",
]

import binascii
from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import IO, TYPE_CHECKING, Union

from .errors import (
    CyclicRefError,
    MalformedRefError,
    NotFoundError,
    PackedRefsError,
    TransportError,
)
from .keys import ROOT_DIR
from .log_utils import getLogger

if TYPE_CHECKING:
    from .database import RemoteObjectDatabase

HEADREF = b"HEAD"
SYMREF = b"ref: "
LOCAL_REFS_DIR = b"refs"
PACKED_REFS = ROOT_DIR + "packed-refs"
PACKED_REFS_HEADER = b"# pack-refs with:"
PACKED_REFS_PEELED = b" peeled"

logger = getLogger(__name__)


def valid_hexsha(hex: bytes) -> bool:
    """Check whether a string is a hex SHA-1 or SHA-256 object id."""
    if len(hex) not in (40, 64):
        return False
    try:
        binascii.unhexlify(hex)
    except (TypeError, binascii.Error):
        return False
    else:
        return True


class Storage(Enum):
    """Where a ref was found."""

    NEW = "new"
    LOOSE = "loose"
    PACKED = "packed"
    LOOSE_PACKED = "loose-packed"


@dataclass(frozen=True)
class ObjectIdRef:
    """A ref pointing directly at an object."""

    name: bytes
    storage: Storage
    object_id: bytes | None
    peeled: bytes | None = None

    is_symbolic = False

    @property
    def leaf(self) -> "ObjectIdRef":
        """The ref at the end of the chain; this ref itself."""
        return self


@dataclass(frozen=True)
class SymbolicRef:
    """A ref pointing at another ref by name."""

    name: bytes
    target: "Ref"

    is_symbolic = True

    @property
    def leaf(self) -> ObjectIdRef:
        """The direct ref at the end of the chain."""
        return self.target.leaf

    @property
    def storage(self) -> Storage:
        """Symbolic refs are only ever stored loose."""
        return Storage.LOOSE

    @property
    def object_id(self) -> bytes | None:
        """Object id of the ref this one ends up at."""
        return self.leaf.object_id

    @property
    def peeled(self) -> bytes | None:
        """Peeled object id of the ref this one ends up at."""
        return self.leaf.peeled


Ref = Union[ObjectIdRef, SymbolicRef]


def _split_ref_line(line: bytes) -> tuple[bytes, bytes]:
    """Split a single ref line into a tuple of SHA1 and name."""
    fields = line.rstrip(b"\n\r").split(b" ")
    if len(fields) != 2:
        raise PackedRefsError(f"invalid ref line {line!r}")
    sha, name = fields
    if not valid_hexsha(sha):
        raise PackedRefsError(f"Invalid hex sha {sha!r}")
    return (sha, name)


def read_packed_refs_with_peeled(
    f: IO[bytes],
) -> Iterator[tuple[bytes, bytes, bytes | None]]:
    """Read a packed refs file including peeled refs.

    Yields tuples with SHA1s, ref names, and peeled SHA1s (or None).

    Args:
      f: file-like object to read from
    """
    last = None
    for line in f:
        line = line.rstrip(b"\r\n")
        if not line or line.startswith(b"#"):
            continue
        if line.startswith(b"^"):
            if not last:
                raise PackedRefsError("unexpected peeled ref line")
            if not valid_hexsha(line[1:]):
                raise PackedRefsError(f"Invalid hex sha {line[1:]!r}")
            sha, name = _split_ref_line(last)
            last = None
            yield (sha, name, line[1:])
        else:
            if last:
                sha, name = _split_ref_line(last)
                yield (sha, name, None)
            last = line
    if last:
        sha, name = _split_ref_line(last)
        yield (sha, name, None)


def write_packed_refs(
    f: IO[bytes],
    packed_refs: Mapping[bytes, bytes],
    peeled_refs: Mapping[bytes, bytes] | None = None,
) -> None:
    """Write a packed refs file.

    Args:
      f: empty file-like object to write to
      packed_refs: dict of refname to sha of packed refs to write
      peeled_refs: dict of refname to peeled value of sha
    """
    if peeled_refs is None:
        peeled_refs = {}
    else:
        f.write(PACKED_REFS_HEADER + PACKED_REFS_PEELED + b"\n")
    for refname in sorted(packed_refs.keys()):
        f.write(packed_refs[refname] + b" " + refname + b"\n")
        if refname in peeled_refs:
            f.write(b"^" + peeled_refs[refname] + b"\n")


class RefResolver:
    """Builds the set of refs a remote repository advertises.

    Args:
      db: Object database of the repository; refs are read relative to it
    """

    def __init__(self, db: "RemoteObjectDatabase") -> None:
        self.db = db

    def read_advertised_refs(self) -> dict[bytes, Ref]:
        """Read all refs of the repository.

        Packed refs are read first, so that loose refs can tell whether
        they shadow a packed one. ``HEAD`` is read last.

        Returns: Dictionary mapping ref names to refs, sorted by name
        """
        avail: dict[bytes, Ref] = {}
        self.read_packed_refs(avail)
        self.read_loose_refs(avail)
        self.read_ref(avail, HEADREF)
        return dict(sorted(avail.items()))

    def read_packed_refs(self, avail: MutableMapping[bytes, Ref]) -> None:
        """Add the refs from ``packed-refs``, if there is such a file."""
        try:
            f = self.db.open_reader(PACKED_REFS)
        except NotFoundError:
            return
        except (OSError, TransportError) as exc:
            raise TransportError(self.db.uri, "error in packed-refs") from exc
        try:
            with f:
                for sha, name, peeled in read_packed_refs_with_peeled(f):
                    avail[name] = ObjectIdRef(name, Storage.PACKED, sha, peeled)
        except (OSError, PackedRefsError) as exc:
            raise TransportError(self.db.uri, "error in packed-refs") from exc

    def read_loose_refs(self, avail: MutableMapping[bytes, Ref]) -> None:
        """Add the loose refs found by listing ``refs/``."""
        try:
            names = self.db.list_keys(ROOT_DIR + LOCAL_REFS_DIR.decode("ascii"))
        except (OSError, TransportError) as exc:
            raise TransportError(self.db.uri, "cannot list refs") from exc
        for n in sorted(names):
            self.read_ref(avail, LOCAL_REFS_DIR + b"/" + n.encode("utf-8"))

    def read_ref(
        self,
        avail: MutableMapping[bytes, Ref],
        name: bytes,
        _resolving: tuple[bytes, ...] = (),
    ) -> Ref | None:
        """Read a loose ref and add it to ``avail``.

        Symbolic refs are followed; their target is read as well unless it
        is already in ``avail``.

        Args:
          avail: Refs read so far; updated in place
          name: Name of the ref to read
        Returns: The ref, or None if there is no loose ref by that name
        Raises:
          MalformedRefError: if the ref blob holds neither an object id nor
            a symbolic ref
          CyclicRefError: if symbolic refs point at each other in a loop
          TransportError: if the ref blob cannot be read
        """
        if name in _resolving:
            raise CyclicRefError(name, _resolving)
        path = ROOT_DIR + name.decode("utf-8")
        try:
            with self.db.open_reader(path) as f:
                lines = f.readlines()
        except NotFoundError:
            return None
        except (OSError, TransportError) as exc:
            raise TransportError(self.db.uri, f"cannot read {path}") from exc

        if not lines:
            raise MalformedRefError(name)
        line = lines[0].rstrip(b"\r\n")

        if line.startswith(SYMREF):
            target = line[len(SYMREF) :]
            if not _valid_ref_name(target):
                raise MalformedRefError(name, line)
            r = avail.get(target)
            if r is None:
                r = self.read_ref(avail, target, (*_resolving, name))
            if r is None:
                r = ObjectIdRef(target, Storage.NEW, None)
            ref: Ref = SymbolicRef(name, r)
            logger.debug("%s is a symbolic ref to %s", name, target)
            avail[name] = ref
            return ref

        if valid_hexsha(line):
            ref = ObjectIdRef(name, _loose(avail.get(name)), line)
            avail[name] = ref
            return ref

        raise MalformedRefError(name, line)


def _valid_ref_name(name: bytes) -> bool:
    if not name.strip():
        return False
    try:
        name.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def _loose(r: Ref | None) -> Storage:
    if r is not None and r.storage == Storage.PACKED:
        return Storage.LOOSE_PACKED
    return Storage.LOOSE

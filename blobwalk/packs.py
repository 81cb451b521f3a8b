# packs.py -- Pack file discovery
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

"""Pack file discovery.

Pack files are uploaded before their index, so a listing of the pack
directory can show a ``.pack`` whose ``.idx`` is not there yet (or never
will be, if the upload was interrupted). Only complete pairs are usable.
"""

__all__ = ["iter_pack_names", "list_packs", "write_info_packs"]

from collections.abc import Iterable, Iterator

from .store import BlobStore

PACK_PREFIX = "pack-"
PACK_EXT = ".pack"
INDEX_EXT = ".idx"


def iter_pack_names(names: Iterable[str]) -> Iterator[str]:
    """Iterate over the pack files that have a matching index.

    Args:
      names: File names found in a pack directory
    Returns: Iterator over ``pack-<id>.pack`` names
    """
    have = set(names)
    for name in have:
        if not name.startswith(PACK_PREFIX) or not name.endswith(PACK_EXT):
            continue
        if name[: -len(PACK_EXT)] + INDEX_EXT in have:
            yield name


def list_packs(store: BlobStore, bucket: str, pack_prefix: str) -> set[str]:
    """List the complete packs below a key prefix.

    Args:
      store: Blob store to list
      bucket: Bucket holding the repository
      pack_prefix: Key of the pack directory
    Returns: Set of ``pack-<id>.pack`` names
    """
    return set(iter_pack_names(store.list(bucket, pack_prefix)))


def write_info_packs(pack_names: Iterable[str]) -> bytes:
    """Generate the contents of an ``objects/info/packs`` file."""
    lines = [f"P {name}\n".encode("utf-8") for name in pack_names]
    lines.append(b"\n")
    return b"".join(lines)

# keys.py -- Mapping repository paths onto store keys
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

"""Mapping repository paths onto store keys.

Paths handed to a remote object database are relative to its ``objects``
directory, and may climb out of it with ``../`` (``../refs/heads/main``,
``../packed-refs``). Keys in the store are flat strings, so the climbing is
done on the key prefix instead.
"""

__all__ = ["ROOT_DIR", "normalize_prefix", "resolve_key"]

from .errors import InvalidPathError

ROOT_DIR = "../"


def resolve_key(base: str, path: str) -> str:
    """Resolve a path relative to a key prefix.

    Args:
      base: Key prefix, without leading or trailing slash
      path: Relative path, possibly starting with one or more ``../``
    Returns: The store key for ``path``. Climbing out of every segment of
      ``base`` lands at the root of the bucket.
    Raises:
      InvalidPathError: if ``path`` climbs above the root of the bucket
    """
    subpath = path
    if subpath.endswith("/"):
        subpath = subpath[:-1]
    key = base
    while subpath.startswith(ROOT_DIR):
        if not key:
            raise InvalidPathError(base, path)
        key = key.rpartition("/")[0]
        subpath = subpath[len(ROOT_DIR) :]
    if not key:
        return subpath
    return key + "/" + subpath


def normalize_prefix(path: str) -> str:
    """Strip one leading and one trailing slash from a key prefix."""
    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    return path

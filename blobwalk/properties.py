# properties.py -- Reading and writing property files
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

"""Reading and writing property files.

The version manifest is stored in the line-oriented ``key=value`` format
known from Java property files: ``#`` and ``!`` start comments, keys are
separated from values by ``=``, ``:`` or whitespace, a trailing backslash
continues a line, and special characters are backslash-escaped.
"""

__all__ = ["read_properties", "write_properties"]

import time
from collections.abc import Iterable, Iterator, Mapping
from typing import IO

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_REVERSE_ESCAPES = {v: "\\" + k for k, v in _ESCAPES.items()}


def _logical_lines(lines: Iterable[str]) -> Iterator[str]:
    """Join continuation lines and drop comments and blank lines."""
    pending: str | None = None
    for raw in lines:
        line = raw.rstrip("\r\n")
        if pending is None:
            line = line.lstrip(_WHITESPACE)
            if not line or line[0] in "#!":
                continue
        else:
            line = pending + line.lstrip(_WHITESPACE)
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = line[:-1]
            continue
        pending = None
        yield line
    if pending is not None:
        yield pending


def _unescape(text: str) -> str:
    ret = []
    i = 0
    while i < len(text):
        c = text[i]
        i += 1
        if c != "\\" or i == len(text):
            ret.append(c)
            continue
        c = text[i]
        i += 1
        if c == "u":
            digits = text[i : i + 4]
            if len(digits) != 4:
                raise ValueError(f"Malformed \\uxxxx encoding: {text!r}")
            ret.append(chr(int(digits, 16)))
            i += 4
        else:
            ret.append(_ESCAPES.get(c, c))
    # \uXXXX pairs may spell a surrogate pair; fold them into one character.
    return "".join(ret).encode("utf-16-le", "surrogatepass").decode("utf-16-le")


def _split_line(line: str) -> tuple[str, str]:
    i = 0
    while i < len(line):
        c = line[i]
        if c == "\\":
            i += 2
            continue
        if c in _SEPARATORS or c in _WHITESPACE:
            break
        i += 1
    key = line[:i]
    rest = line[i:].lstrip(_WHITESPACE)
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return _unescape(key), _unescape(rest)


def read_properties(f: IO[bytes]) -> dict[str, str]:
    """Read a property file.

    Args:
      f: file-like object to read from
    Returns: Dictionary mapping keys to values; later entries win
    """
    text = f.read().decode("utf-8")
    ret = {}
    for line in _logical_lines(text.split("\n")):
        key, value = _split_line(line)
        ret[key] = value
    return ret


def _escape(text: str, is_key: bool) -> str:
    ret = []
    for i, c in enumerate(text):
        if c == " ":
            ret.append("\\ " if is_key or i == 0 else " ")
        elif c in _REVERSE_ESCAPES:
            ret.append(_REVERSE_ESCAPES[c])
        elif c in "\\=:#!":
            ret.append("\\" + c)
        elif " " < c <= "~":
            ret.append(c)
        else:
            # Outside the BMP this gives a surrogate pair, as Java does.
            encoded = c.encode("utf-16-be", "surrogatepass").hex().upper()
            for j in range(0, len(encoded), 4):
                ret.append("\\u" + encoded[j : j + 4])
    return "".join(ret)


def write_properties(
    f: IO[bytes], properties: Mapping[str, str], comment: str | None = None
) -> None:
    """Write a property file.

    Entries are written sorted by key so the output is stable.

    Args:
      f: empty file-like object to write to
      properties: dict of keys to values
      comment: Optional comment line to put above the timestamp
    """
    if comment is not None:
        f.write(f"#{' '.join(comment.splitlines())}\n".encode("utf-8"))
    f.write(f"#{time.strftime('%a %b %d %H:%M:%S %Z %Y')}\n".encode("utf-8"))
    for key in sorted(properties):
        line = _escape(key, True) + "=" + _escape(properties[key], False) + "\n"
        f.write(line.encode("ascii"))

# log_utils.py -- Logging configuration for blobwalk
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

"""Logging utilities for blobwalk.

Blobwalk is mostly used as a library, so by default nothing is printed: the
``blobwalk`` logger carries a no-op handler. Command line tools call
:func:`default_logging_config` to get output on stderr.

Setting ``BLOBWALK_TRACE`` turns on debug output: ``1``, ``2`` or ``true``
send it to stderr, an absolute path appends it to that file (or to a
per-process file inside it, if it is a directory).
"""

import logging
import os
import sys

getLogger = logging.getLogger

TRACE_ENV = "BLOBWALK_TRACE"


class _NullHandler(logging.Handler):
    """No-op logging handler to avoid unexpected logging warnings."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_BLOBWALK_LOGGER = getLogger("blobwalk")
_BLOBWALK_LOGGER.addHandler(_NULL_HANDLER)


def _get_trace_target() -> str | int | None:
    """Get the trace target from the BLOBWALK_TRACE environment variable.

    Returns:
        None if tracing is disabled, 2 for stderr, or a path
    """
    trace_value = os.environ.get(TRACE_ENV, "")
    if not trace_value or trace_value.lower() in ("0", "false"):
        return None
    if trace_value.lower() in ("1", "2", "true"):
        return 2
    if os.path.isabs(trace_value):
        return trace_value
    return None


def _configure_logging_from_trace() -> bool:
    """Configure debug logging if BLOBWALK_TRACE asks for it.

    Returns True if trace configuration was successful, False otherwise.
    """
    trace_target = _get_trace_target()
    if trace_target is None:
        return False

    trace_format = "%(asctime)s %(name)s %(levelname)s: %(message)s"

    if trace_target == 2:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=trace_format)
        return True

    assert isinstance(trace_target, str)
    if os.path.isdir(trace_target):
        filename = os.path.join(trace_target, f"trace.{os.getpid()}")
    else:
        filename = trace_target
    try:
        logging.basicConfig(
            level=logging.DEBUG, filename=filename, filemode="a", format=trace_format
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Failed to open {TRACE_ENV} file {filename}: {e}\n")
        return False
    return True


def default_logging_config(verbose: bool = False) -> None:
    """Set up the default blobwalk loggers.

    Args:
      verbose: Log at debug level rather than info
    """
    remove_null_handler()
    if not _configure_logging_from_trace():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s: %(message)s",
        )


def remove_null_handler() -> None:
    """Remove the null handler from the blobwalk loggers."""
    _BLOBWALK_LOGGER.removeHandler(_NULL_HANDLER)

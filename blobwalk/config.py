# config.py -- Configuration loading
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

"""Configuration loading.

Configuration is an INI file, read with :mod:`configparser`. Sample::

    [s3]
    # Base URL of the S3-compatible service
    endpoint = https://s3.example.com
    # Timeout for HTTP requests, in seconds (Default 20)
    timeout = 20
    # Timeout for writing the version manifest on close (Default 20)
    flush_timeout = 20
    # Credentials, used when the URL carries no password
    accesskey = AKIA...
    secretkey = ...
    # Extra headers sent with every request, one per line
    headers =
        X-Gateway-Token: abc

The file is found through the ``path`` argument or, failing that, the
``BLOBWALK_CFG`` environment variable.
"""

__all__ = ["CONFIG_ENV", "get_flush_timeout", "get_store_from_conf", "load_conf"]

import os
from configparser import ConfigParser
from typing import TextIO

from .s3 import S3BlobStore

CONFIG_ENV = "BLOBWALK_CFG"
SECTION = "s3"
DEFAULT_TIMEOUT = 20.0


def load_conf(path: str | None = None, file: TextIO | None = None) -> ConfigParser:
    """Load configuration.

    Args:
      path: The path to the configuration file
      file: If provided read instead the file like object
    Raises:
      FileNotFoundError: if no configuration file can be found
    """
    conf = ConfigParser()
    if file:
        conf.read_file(file, path)
        return conf
    if not path:
        try:
            path = os.environ[CONFIG_ENV]
        except KeyError as exc:
            raise FileNotFoundError(
                f"You need to specify a configuration file or set {CONFIG_ENV}"
            ) from exc
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Unable to read configuration file {path}")
    conf.read(path)
    return conf


def _parse_headers(value: str) -> dict[str, str]:
    headers = {}
    for line in value.splitlines():
        line = line.strip()
        if not line:
            continue
        name, sep, header_value = line.partition(":")
        if not sep:
            raise ValueError(f"Invalid header line {line!r}")
        headers[name.strip()] = header_value.strip()
    return headers


def get_flush_timeout(conf: ConfigParser) -> float:
    """Return the timeout to use when writing the manifest on close."""
    return conf.getfloat(SECTION, "flush_timeout", fallback=DEFAULT_TIMEOUT)


def get_store_from_conf(
    conf: ConfigParser,
    username: str | None = None,
    password: str | None = None,
) -> S3BlobStore:
    """Create a blob store from configuration.

    Args:
      conf: Loaded configuration
      username: Username from the URL
      password: Password from the URL. When missing, the configured
        ``accesskey``/``secretkey`` pair is used instead, if there is one.
    Raises:
      ValueError: if no endpoint is configured
    """
    endpoint = conf.get(SECTION, "endpoint", fallback=None)
    if not endpoint:
        raise ValueError(f"No endpoint configured in section [{SECTION}]")
    if password is None:
        secretkey = conf.get(SECTION, "secretkey", fallback=None)
        if secretkey is not None:
            username = conf.get(SECTION, "accesskey", fallback=username)
            password = secretkey
    return S3BlobStore(
        endpoint,
        username=username,
        password=password,
        timeout=conf.getfloat(SECTION, "timeout", fallback=DEFAULT_TIMEOUT),
        extra_headers=_parse_headers(conf.get(SECTION, "headers", fallback="")),
    )

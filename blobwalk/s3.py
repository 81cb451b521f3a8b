# s3.py -- S3-compatible blob store over HTTP
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

"""S3-compatible blob store over HTTP.

Talks the plain REST dialect of S3 (path-style URLs, ``versionId`` on reads,
``x-amz-version-id`` on writes, ListObjectsV2 for listings) through urllib3.
Requests are not signed; this is meant for gateways and S3-compatible
servers that authenticate with HTTP basic credentials or static headers.
"""

__all__ = ["S3BlobStore", "default_urllib3_manager"]

import os
import xml.etree.ElementTree as ET
from io import BytesIO
from typing import TYPE_CHECKING, BinaryIO
from urllib.parse import quote, urlencode

from . import __version__
from .errors import NotFoundError, TransportError
from .log_utils import getLogger
from .store import BlobStore

if TYPE_CHECKING:
    import urllib3

VERSION_HEADER = "x-amz-version-id"
USER_AGENT = "blobwalk/{}".format(".".join(map(str, __version__)))

logger = getLogger(__name__)


def default_urllib3_manager(
    timeout: float | None = None,
    headers: dict[str, str] | None = None,
) -> "urllib3.PoolManager":
    """Return urllib3 connection pool manager.

    Honour proxy configurations from the environment.

    Args:
      timeout: Timeout for HTTP requests in seconds
      headers: Headers to send with every request
    """
    import urllib3

    req_headers = {"User-agent": USER_AGENT}
    if headers:
        req_headers.update(headers)
    kwargs: dict[str, object] = {"headers": req_headers}
    if timeout is not None:
        kwargs["timeout"] = timeout

    proxy_server = None
    for proxyname in ("https_proxy", "http_proxy", "all_proxy"):
        proxy_server = os.environ.get(proxyname)
        if proxy_server:
            break
    if proxy_server:
        return urllib3.ProxyManager(proxy_server, **kwargs)  # type: ignore[arg-type]
    return urllib3.PoolManager(**kwargs)  # type: ignore[arg-type]


class S3BlobStore(BlobStore):
    """Blob store speaking the S3 REST protocol."""

    def __init__(
        self,
        endpoint: str,
        pool_manager: "urllib3.PoolManager | None" = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize an S3BlobStore.

        Args:
          endpoint: Base URL of the service, e.g. "https://s3.example.com"
          pool_manager: Optional urllib3 PoolManager to use
          username: Optional username for HTTP basic authentication
          password: Optional password for HTTP basic authentication
          timeout: Timeout for HTTP requests in seconds
          extra_headers: Headers to send with every request
        """
        self.endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        if pool_manager is None:
            self.pool_manager = default_urllib3_manager(
                timeout=timeout, headers=extra_headers
            )
        else:
            self.pool_manager = pool_manager
            if extra_headers:
                self.pool_manager.headers.update(extra_headers)  # type: ignore[attr-defined]
        if username is not None:
            import urllib3.util

            credentials = f"{username}:{password or ''}"
            self.pool_manager.headers.update(  # type: ignore[attr-defined]
                urllib3.util.make_headers(basic_auth=credentials)
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.endpoint!r})"

    def _url(self, bucket: str, key: str = "", query: dict[str, str] | None = None) -> str:
        url = f"{self.endpoint}/{quote(bucket, safe='')}"
        if key:
            url += "/" + quote(key, safe="/")
        if query:
            url += "?" + urlencode(query)
        return url

    def _request(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        timeout: float | None = None,
    ) -> "urllib3.BaseHTTPResponse":
        import urllib3.exceptions

        kwargs: dict[str, object] = {}
        if body is not None:
            kwargs["body"] = body
        if timeout is None:
            timeout = self._timeout
        if timeout is not None:
            kwargs["timeout"] = timeout
        logger.debug("%s %s", method, url)
        try:
            return self.pool_manager.request(method, url, **kwargs)  # type: ignore[arg-type]
        except urllib3.exceptions.HTTPError as e:
            raise TransportError(url, f"{method} failed: {e}") from e

    def _check_status(
        self, resp: "urllib3.BaseHTTPResponse", method: str, url: str
    ) -> None:
        if resp.status < 200 or resp.status >= 300:
            raise TransportError(
                url, f"{method} request failed with error code {resp.status}"
            )

    def get(
        self, bucket: str, key: str, version: str | None = None
    ) -> tuple[BinaryIO, str | None]:
        query = {"versionId": version} if version is not None else None
        url = self._url(bucket, key, query)
        resp = self._request("GET", url)
        if resp.status == 404:
            raise NotFoundError(bucket, key)
        self._check_status(resp, "GET", url)
        return BytesIO(resp.data), resp.headers.get(VERSION_HEADER)

    def put(
        self, bucket: str, key: str, data: bytes, timeout: float | None = None
    ) -> str | None:
        url = self._url(bucket, key)
        resp = self._request("PUT", url, body=data, timeout=timeout)
        self._check_status(resp, "PUT", url)
        return resp.headers.get(VERSION_HEADER)

    def delete(self, bucket: str, key: str) -> None:
        url = self._url(bucket, key)
        resp = self._request("DELETE", url)
        if resp.status == 404:
            return
        self._check_status(resp, "DELETE", url)

    def list(self, bucket: str, prefix: str) -> set[str]:
        start = prefix + "/"
        names = set()
        query = {"list-type": "2", "prefix": start}
        while True:
            url = self._url(bucket, query=query)
            resp = self._request("GET", url)
            if resp.status == 404:
                raise NotFoundError(bucket, start)
            self._check_status(resp, "GET", url)
            try:
                root = ET.fromstring(resp.data)
            except ET.ParseError as e:
                raise TransportError(url, f"invalid listing: {e}") from e
            ns = _namespace(root)
            for contents in root.iter(ns + "Contents"):
                key = contents.findtext(ns + "Key")
                if key and key.startswith(start):
                    names.add(key[len(start) :])
            token = root.findtext(ns + "NextContinuationToken")
            if root.findtext(ns + "IsTruncated") != "true" or not token:
                return names
            query = {"list-type": "2", "prefix": start, "continuation-token": token}


def _namespace(element: ET.Element) -> str:
    """Return the ``{uri}`` namespace prefix of an element's tag, if any."""
    if element.tag.startswith("{"):
        return element.tag[: element.tag.index("}") + 1]
    return ""

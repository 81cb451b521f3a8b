# test_config.py -- Tests for blobwalk.config
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

"""Tests for blobwalk.config."""

import os
import tempfile
from io import StringIO
from unittest import TestCase
from unittest.mock import patch

from blobwalk.config import (
    CONFIG_ENV,
    get_flush_timeout,
    get_store_from_conf,
    load_conf,
)
from blobwalk.s3 import S3BlobStore

config_file = """[s3]
endpoint = https://s3.example.com/
timeout = %(timeout)s
flush_timeout = 5
accesskey = AKIAEXAMPLE
secretkey = secret
headers =
    X-Gateway-Token: abc
    X-Other: def
"""


def create_conf(timeout="10"):
    return load_conf(file=StringIO(config_file % {"timeout": timeout}))


class LoadConfTests(TestCase):
    def test_load_from_file_object(self):
        conf = create_conf()
        self.assertEqual("https://s3.example.com/", conf.get("s3", "endpoint"))

    def test_load_from_path(self):
        with tempfile.NamedTemporaryFile("w", suffix=".cfg", delete=False) as f:
            f.write("[s3]\nendpoint = https://s3.example.com\n")
        self.addCleanup(os.unlink, f.name)
        conf = load_conf(f.name)
        self.assertEqual("https://s3.example.com", conf.get("s3", "endpoint"))

    def test_load_from_env(self):
        with tempfile.NamedTemporaryFile("w", suffix=".cfg", delete=False) as f:
            f.write("[s3]\nendpoint = https://env.example.com\n")
        self.addCleanup(os.unlink, f.name)
        with patch.dict(os.environ, {CONFIG_ENV: f.name}):
            conf = load_conf()
        self.assertEqual("https://env.example.com", conf.get("s3", "endpoint"))

    def test_load_no_path(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertRaises(FileNotFoundError, load_conf)

    def test_load_missing_file(self):
        self.assertRaises(
            FileNotFoundError, load_conf, "/nonexistent/blobwalk/config.cfg"
        )


class StoreFromConfTests(TestCase):
    def test_flush_timeout(self):
        self.assertEqual(5.0, get_flush_timeout(create_conf()))

    def test_flush_timeout_default(self):
        conf = load_conf(file=StringIO("[s3]\nendpoint = https://s3.example.com\n"))
        self.assertEqual(20.0, get_flush_timeout(conf))

    def test_store(self):
        store = get_store_from_conf(create_conf())
        self.assertIsInstance(store, S3BlobStore)
        self.assertEqual("https://s3.example.com", store.endpoint)
        self.assertEqual(10.0, store._timeout)
        headers = store.pool_manager.headers
        self.assertEqual("abc", headers["X-Gateway-Token"])
        self.assertEqual("def", headers["X-Other"])
        # AKIAEXAMPLE:secret
        self.assertEqual(
            "Basic QUtJQUVYQU1QTEU6c2VjcmV0", headers["authorization"]
        )

    def test_store_url_credentials(self):
        store = get_store_from_conf(create_conf(), "user", "pass")
        self.assertEqual(
            "Basic dXNlcjpwYXNz", store.pool_manager.headers["authorization"]
        )

    def test_store_no_endpoint(self):
        conf = load_conf(file=StringIO("[s3]\ntimeout = 3\n"))
        self.assertRaises(ValueError, get_store_from_conf, conf)

    def test_store_no_section(self):
        conf = load_conf(file=StringIO(""))
        self.assertRaises(ValueError, get_store_from_conf, conf)

    def test_store_bad_header(self):
        conf = load_conf(
            file=StringIO(
                "[s3]\nendpoint = https://s3.example.com\nheaders = no-colon\n"
            )
        )
        self.assertRaises(ValueError, get_store_from_conf, conf)

    def test_store_url_user_without_password(self):
        store = get_store_from_conf(create_conf(), "user")
        # AKIAEXAMPLE:secret
        self.assertEqual(
            "Basic QUtJQUVYQU1QTEU6c2VjcmV0", store.pool_manager.headers["authorization"]
        )

    def test_store_no_credentials(self):
        conf = load_conf(file=StringIO("[s3]\nendpoint = https://s3.example.com\n"))
        store = get_store_from_conf(conf)
        self.assertNotIn("authorization", store.pool_manager.headers)

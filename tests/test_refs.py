# test_refs.py -- Tests for blobwalk.refs
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

"""Tests for blobwalk.refs."""

from io import BytesIO
from unittest import TestCase
from unittest.mock import MagicMock

from blobwalk.errors import (
    CyclicRefError,
    MalformedRefError,
    NotFoundError,
    PackedRefsError,
    TransportError,
)
from blobwalk.refs import (
    ObjectIdRef,
    RefResolver,
    Storage,
    SymbolicRef,
    read_packed_refs_with_peeled,
    valid_hexsha,
    write_packed_refs,
)
from blobwalk.store import MemoryBlobStore
from blobwalk.transport import BlobStoreTransport

ONES = b"1" * 40
TWOS = b"2" * 40
SHA = b"abcdef0123456789abcdef0123456789abcdef01"


class ValidHexshaTests(TestCase):
    def test_valid(self):
        self.assertTrue(valid_hexsha(SHA))
        self.assertTrue(valid_hexsha(b"a" * 64))

    def test_invalid(self):
        self.assertFalse(valid_hexsha(b"not-a-ref"))
        self.assertFalse(valid_hexsha(b"g" * 40))
        self.assertFalse(valid_hexsha(b"a" * 39))
        self.assertFalse(valid_hexsha(b""))


class RefModelTests(TestCase):
    def test_object_id_ref(self):
        ref = ObjectIdRef(b"refs/heads/main", Storage.LOOSE, SHA)
        self.assertFalse(ref.is_symbolic)
        self.assertIs(ref, ref.leaf)
        self.assertIsNone(ref.peeled)

    def test_symbolic_ref(self):
        target = ObjectIdRef(b"refs/heads/main", Storage.PACKED, SHA, TWOS)
        ref = SymbolicRef(b"HEAD", target)
        self.assertTrue(ref.is_symbolic)
        self.assertEqual(SHA, ref.object_id)
        self.assertEqual(TWOS, ref.peeled)
        self.assertEqual(Storage.LOOSE, ref.storage)
        self.assertIs(target, ref.leaf)

    def test_nested_symbolic_ref(self):
        target = ObjectIdRef(b"refs/heads/main", Storage.LOOSE, SHA)
        ref = SymbolicRef(b"A", SymbolicRef(b"B", target))
        self.assertIs(target, ref.leaf)


class PackedRefsFormatTests(TestCase):
    def test_read(self):
        f = BytesIO(
            b"# pack-refs with: peeled\n"
            + ONES + b" refs/heads/main\n"
            + TWOS + b" refs/tags/v1\n"
            + b"^" + SHA + b"\n"
        )
        self.assertEqual(
            [
                (ONES, b"refs/heads/main", None),
                (TWOS, b"refs/tags/v1", SHA),
            ],
            list(read_packed_refs_with_peeled(f)),
        )

    def test_read_peeled_first(self):
        f = BytesIO(b"^" + SHA + b"\n")
        self.assertRaises(PackedRefsError, list, read_packed_refs_with_peeled(f))

    def test_read_bad_line(self):
        f = BytesIO(b"not a valid line\n")
        self.assertRaises(PackedRefsError, list, read_packed_refs_with_peeled(f))

    def test_read_bad_sha(self):
        f = BytesIO(b"x" * 40 + b" refs/heads/main\n")
        self.assertRaises(PackedRefsError, list, read_packed_refs_with_peeled(f))

    def test_write_read(self):
        f = BytesIO()
        write_packed_refs(
            f,
            {b"refs/tags/v1": TWOS, b"refs/heads/main": ONES},
            {b"refs/tags/v1": SHA},
        )
        self.assertEqual(
            b"# pack-refs with: peeled\n"
            + ONES + b" refs/heads/main\n"
            + TWOS + b" refs/tags/v1\n"
            + b"^" + SHA + b"\n",
            f.getvalue(),
        )

    def test_write_without_peeled(self):
        f = BytesIO()
        write_packed_refs(f, {b"refs/heads/main": ONES})
        self.assertEqual(ONES + b" refs/heads/main\n", f.getvalue())


class RefResolverTests(TestCase):
    def setUp(self):
        self.store = MemoryBlobStore()
        self.transport = BlobStoreTransport(self.store, "bucket", "repo")
        self.db = self.transport._open_database()
        self.resolver = RefResolver(self.db)

    def put(self, name, content):
        self.store.put("bucket", "repo/" + name, content)

    def test_direct_ref(self):
        self.put("refs/heads/main", SHA + b"\n")
        avail = {}
        ref = self.resolver.read_ref(avail, b"refs/heads/main")
        self.assertEqual(ObjectIdRef(b"refs/heads/main", Storage.LOOSE, SHA), ref)
        self.assertEqual({b"refs/heads/main": ref}, avail)

    def test_direct_ref_without_newline(self):
        self.put("refs/heads/main", SHA)
        ref = self.resolver.read_ref({}, b"refs/heads/main")
        self.assertEqual(SHA, ref.object_id)

    def test_missing_ref(self):
        avail = {}
        self.assertIsNone(self.resolver.read_ref(avail, b"refs/heads/main"))
        self.assertEqual({}, avail)

    def test_loose_packed(self):
        self.put("refs/heads/main", SHA + b"\n")
        avail = {b"refs/heads/main": ObjectIdRef(b"refs/heads/main", Storage.PACKED, ONES)}
        ref = self.resolver.read_ref(avail, b"refs/heads/main")
        self.assertEqual(Storage.LOOSE_PACKED, ref.storage)
        self.assertEqual(SHA, ref.object_id)
        self.assertIs(ref, avail[b"refs/heads/main"])

    def test_symbolic_chain(self):
        self.put("HEAD", b"ref: refs/heads/main\n")
        self.put("refs/heads/main", SHA + b"\n")
        avail = {}
        head = self.resolver.read_ref(avail, b"HEAD")
        self.assertIsInstance(head, SymbolicRef)
        self.assertEqual(
            ObjectIdRef(b"refs/heads/main", Storage.LOOSE, SHA), head.target
        )
        self.assertEqual(SHA, head.object_id)
        self.assertEqual({b"HEAD", b"refs/heads/main"}, set(avail))

    def test_symbolic_reuses_known_target(self):
        self.put("HEAD", b"ref: refs/heads/main\n")
        known = ObjectIdRef(b"refs/heads/main", Storage.PACKED, ONES)
        avail = {b"refs/heads/main": known}
        head = self.resolver.read_ref(avail, b"HEAD")
        self.assertIs(known, head.target)

    def test_symbolic_to_missing(self):
        self.put("HEAD", b"ref: refs/heads/unborn\n")
        avail = {}
        head = self.resolver.read_ref(avail, b"HEAD")
        self.assertEqual(
            ObjectIdRef(b"refs/heads/unborn", Storage.NEW, None), head.target
        )
        self.assertIsNone(head.object_id)
        self.assertEqual({b"HEAD"}, set(avail))

    def test_malformed(self):
        self.put("refs/heads/main", b"not-a-ref\n")
        with self.assertRaises(MalformedRefError) as cm:
            self.resolver.read_ref({}, b"refs/heads/main")
        self.assertEqual(b"refs/heads/main", cm.exception.name)
        self.assertEqual(b"not-a-ref", cm.exception.content)

    def test_empty(self):
        self.put("refs/heads/main", b"")
        with self.assertRaises(MalformedRefError) as cm:
            self.resolver.read_ref({}, b"refs/heads/main")
        self.assertIn("empty ref", str(cm.exception))

    def test_cycle(self):
        self.put("refs/heads/a", b"ref: refs/heads/b\n")
        self.put("refs/heads/b", b"ref: refs/heads/a\n")
        with self.assertRaises(CyclicRefError) as cm:
            self.resolver.read_ref({}, b"refs/heads/a")
        self.assertEqual(b"refs/heads/a", cm.exception.name)
        self.assertEqual((b"refs/heads/a", b"refs/heads/b"), cm.exception.path)

    def test_self_cycle(self):
        self.put("HEAD", b"ref: HEAD\n")
        self.assertRaises(CyclicRefError, self.resolver.read_ref, {}, b"HEAD")

    def test_symbolic_target_not_utf8(self):
        self.put("HEAD", b"ref: refs/heads/\xff\n")
        with self.assertRaises(MalformedRefError) as cm:
            self.resolver.read_ref({}, b"HEAD")
        self.assertEqual(b"HEAD", cm.exception.name)
        self.assertEqual(b"ref: refs/heads/\xff", cm.exception.content)

    def test_symbolic_target_empty(self):
        self.put("HEAD", b"ref: \n")
        db = MagicMock(wraps=self.db)
        avail = {}
        with self.assertRaises(MalformedRefError) as cm:
            RefResolver(db).read_ref(avail, b"HEAD")
        self.assertEqual(b"ref: ", cm.exception.content)
        self.assertEqual({}, avail)
        db.open_reader.assert_called_once_with("../HEAD")

    def test_advertised_refs_bad_symbolic_target(self):
        self.put("HEAD", b"ref: refs/heads/\xff\n")
        self.assertRaises(MalformedRefError, self.resolver.read_advertised_refs)

    def test_read_error(self):
        db = MagicMock()
        db.uri = "amazon-s3://bucket/repo/objects"
        db.open_reader.side_effect = TransportError(db.uri, "GET failed")
        with self.assertRaises(TransportError) as cm:
            RefResolver(db).read_ref({}, b"HEAD")
        self.assertIn("../HEAD", str(cm.exception))
        db.open_reader.assert_called_once_with("../HEAD")

    def test_symbolic_target_error_propagates(self):
        self.put("HEAD", b"ref: refs/heads/main\n")
        self.put("refs/heads/main", b"garbage\n")
        self.assertRaises(MalformedRefError, self.resolver.read_ref, {}, b"HEAD")

    def test_read_packed_refs(self):
        self.put(
            "packed-refs",
            b"# pack-refs with: peeled\n"
            + ONES + b" refs/heads/main\n"
            + TWOS + b" refs/tags/v1\n^" + SHA + b"\n",
        )
        avail = {}
        self.resolver.read_packed_refs(avail)
        self.assertEqual(
            {
                b"refs/heads/main": ObjectIdRef(b"refs/heads/main", Storage.PACKED, ONES),
                b"refs/tags/v1": ObjectIdRef(b"refs/tags/v1", Storage.PACKED, TWOS, SHA),
            },
            avail,
        )

    def test_read_packed_refs_missing(self):
        avail = {}
        self.resolver.read_packed_refs(avail)
        self.assertEqual({}, avail)

    def test_read_packed_refs_corrupt(self):
        self.put("packed-refs", b"^" + SHA + b"\n")
        self.assertRaises(TransportError, self.resolver.read_packed_refs, {})

    def test_read_advertised_refs(self):
        self.put("HEAD", b"ref: refs/heads/main\n")
        self.put("refs/heads/main", SHA + b"\n")
        self.put("refs/heads/topic", ONES + b"\n")
        self.put("refs/tags/v1", TWOS + b"\n")
        self.put(
            "packed-refs",
            ONES + b" refs/heads/main\n" + ONES + b" refs/heads/old\n",
        )
        refs = self.resolver.read_advertised_refs()
        self.assertEqual(
            [
                b"HEAD",
                b"refs/heads/main",
                b"refs/heads/old",
                b"refs/heads/topic",
                b"refs/tags/v1",
            ],
            list(refs),
        )
        self.assertEqual(Storage.LOOSE_PACKED, refs[b"refs/heads/main"].storage)
        self.assertEqual(Storage.PACKED, refs[b"refs/heads/old"].storage)
        self.assertEqual(Storage.LOOSE, refs[b"refs/heads/topic"].storage)
        self.assertEqual(SHA, refs[b"HEAD"].object_id)
        self.assertIs(refs[b"refs/heads/main"], refs[b"HEAD"].target)

    def test_read_advertised_refs_empty_repository(self):
        self.assertEqual({}, self.resolver.read_advertised_refs())

    def test_list_failure(self):
        db = MagicMock()
        db.uri = "amazon-s3://bucket/repo/objects"
        db.open_reader.side_effect = NotFoundError("bucket", "repo/packed-refs")
        db.list_keys.side_effect = TransportError(db.uri, "GET failed")
        with self.assertRaises(TransportError) as cm:
            RefResolver(db).read_advertised_refs()
        self.assertIn("cannot list refs", str(cm.exception))

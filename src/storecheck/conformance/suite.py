import tempfile
import uuid
import unittest as ut
import requests
import zirconium as zr
import zrlog
from autoinject import injector
from storecheck.storage import (
    BaseStorageAdapter, Filesystem, Capability, Visibility,
    FileNotFound, FileExists, RootViolation, InvalidPath,
)


XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@injector.inject
def temporary_url_timeout(config: zr.ApplicationConfig = None) -> float:
    return float(config.as_str(("storecheck", "temporary_url", "timeout"), default="30"))


def _unique_name() -> str:
    return uuid.uuid4().hex[:13]


class AdapterConformanceSuite:
    """Behavioural checks every storage adapter must pass.

        Mix this into a unittest.TestCase and implement create_adapter():

            class MyAdapterTest(AdapterConformanceSuite, ut.TestCase):

                def create_adapter(self):
                    return MyAdapter(...)

        Each test gets a fresh Filesystem over a new adapter in self.disk. After the
        test, everything at the root of the adapter is removed again, so the adapter
        must start empty (or share nothing with other tests).
    """

    disk: Filesystem = None

    def create_adapter(self) -> BaseStorageAdapter:
        raise NotImplementedError

    def setUp(self):
        super().setUp()
        self.disk = Filesystem(self.create_adapter())

    def tearDown(self):
        log = zrlog.get_logger("storecheck.conformance")
        for content in self.disk.list_contents():
            if content["type"] == "dir":
                result = self.disk.attempt(self.disk.delete_dir, content["path"])
            else:
                result = self.disk.attempt(self.disk.delete, content["path"])
            if not result:
                log.warning(f"Could not clean up [{content['path']}]: {result.error}")
        super().tearDown()

    def test_has_root_dir(self):
        self.assertFalse(self.disk.has("\\"))
        self.assertFalse(self.disk.has("."))
        self.assertFalse(self.disk.has("/"))
        self.assertFalse(self.disk.has(""))

    def test_root_dir_deletion(self):
        with self.assertRaises(RootViolation):
            self.disk.delete_dir(".")
        with self.assertRaises(RootViolation):
            self.disk.delete_dir("//")
        with self.assertRaises(RootViolation):
            self.disk.delete_dir("")
        with self.assertRaises(InvalidPath) as ctx:
            self.disk.delete_dir("..")
        self.assertNotIsInstance(ctx.exception, RootViolation)

    def test_has_with_dir(self):
        self.disk.create_dir("0", {})
        self.assertTrue(self.disk.has("0"))
        self.disk.delete_dir("0")

    def test_has_with_file(self):
        self.disk.write("file.txt", "content", {})
        self.assertTrue(self.disk.has("file.txt"))
        self.disk.delete("file.txt")

    def test_has_outside_root(self):
        self.assertFalse(self.disk.has(".."))
        self.assertFalse(self.disk.has("../file.txt"))

    def test_temporary_url(self):
        if not self.disk.supports(Capability.TEMPORARY_URL):
            self.skipTest("Temporary URL not supported")
        self.disk.write("file.txt", "content", {})
        temporary_url = self.disk.get_temporary_url("file.txt")
        self.assertIn("http", temporary_url)
        response = requests.get(temporary_url, timeout=temporary_url_timeout())
        response.raise_for_status()
        self.assertEqual(b"content", response.content)

    def test_metadata(self):
        with self.assertRaises(FileNotFound):
            self.disk.get_metadata("/notexists")

    def test_read_stream(self):
        if not self.disk.has("file.txt"):
            self.disk.write("file.txt", "contents", {})
        result = self.disk.read_stream("file.txt")
        try:
            self.assertTrue(hasattr(result, "read"))
            self.assertEqual(b"contents", result.read())
        finally:
            result.close()
        self.disk.delete("file.txt")

    def test_write_stream(self):
        with tempfile.TemporaryFile() as temp:
            temp.write(b"dummy")
            temp.seek(0)
            self.disk.write_stream("dir/file.txt", temp, {"visibility": "public"})
        self.assertTrue(self.disk.has("dir/file.txt"))
        self.assertEqual(b"dummy", self.disk.read("dir/file.txt"))
        self.assertEqual(Visibility.PUBLIC, self.disk.get_visibility("dir/file.txt"))
        self.disk.delete_dir("dir")

    def test_stream_round_trip(self):
        payload = bytes(range(256)) * 64
        with tempfile.TemporaryFile() as temp:
            temp.write(payload)
            self.assertTrue(self.disk.write_stream("round/trip.bin", temp, {}))
        stream = self.disk.read_stream("round/trip.bin")
        try:
            self.assertEqual(payload, stream.read())
        finally:
            stream.close()

    def test_listing_nonexisting_directory(self):
        self.assertEqual([], self.disk.list_contents("nonexisting/directory"))

    def test_update_stream(self):
        self.disk.write("file.txt", "initial")
        with tempfile.TemporaryFile() as temp:
            temp.write(b"dummy")
            self.disk.update_stream("file.txt", temp)
        self.assertTrue(self.disk.has("file.txt"))
        self.assertEqual(b"dummy", self.disk.read("file.txt"))
        self.disk.delete("file.txt")

    def test_update_missing_file(self):
        with self.assertRaises(FileNotFound):
            self.disk.update("missing.txt", "contents")

    def test_create_zero_dir(self):
        self.disk.create_dir("0")
        self.assertTrue(self.disk.has("0"))
        self.disk.delete_dir("0")

    def test_create_dir_recurse(self):
        self.disk.create_dir("a/b/c")
        self.assertTrue(self.disk.has("a/b/c"))
        self.disk.delete_dir("a")

    def test_copy(self):
        self.disk.write("file.ext", "content", {"visibility": "public"})
        self.assertTrue(self.disk.copy("file.ext", "new.ext"))
        self.assertTrue(self.disk.has("new.ext"))
        self.disk.delete("file.ext")
        self.disk.delete("new.ext")

    def test_copy_nested(self):
        self.disk.write("file.ext", "content", {"visibility": "public"})
        self.assertTrue(self.disk.copy("file.ext", "/a/b/new.ext"))
        self.assertTrue(self.disk.has("/a/b/new.ext"))

    def test_copy_preserves_visibility(self):
        self.disk.write("public.ext", "content", {"visibility": "public"})
        self.disk.write("private.ext", "content", {"visibility": "private"})
        self.disk.copy("public.ext", "copies/public.ext")
        self.disk.copy("private.ext", "copies/private.ext")
        self.assertEqual(Visibility.PUBLIC, self.disk.get_visibility("copies/public.ext"))
        self.assertEqual(Visibility.PRIVATE, self.disk.get_visibility("copies/private.ext"))

    def test_copy_missing_source(self):
        with self.assertRaises(FileNotFound):
            self.disk.copy("missing.ext", "new.ext")

    def test_empty_stream(self):
        with tempfile.TemporaryFile() as temp:
            self.assertTrue(self.disk.write_stream("false", temp, {}))
        with tempfile.TemporaryFile() as temp:
            self.assertTrue(self.disk.write_stream("fail.close", temp, {}))
        self.assertEqual(b"", self.disk.read("false"))

    def test_empty_contents(self):
        self.assertTrue(self.disk.write("empty.txt", b""))
        self.assertEqual(b"", self.disk.read("empty.txt"))
        self.assertEqual(0, self.disk.get_size("empty.txt"))

    def test_null_prefix(self):
        adapter = self.disk.get_adapter()
        original = adapter.get_path_prefix()
        try:
            adapter.set_path_prefix("")
            self.assertEqual("", adapter.get_path_prefix())
        finally:
            adapter.set_path_prefix(original)

    def test_rename(self):
        self.assertTrue(self.disk.write("testRename.txt", "testRename", {}))
        dirname = f"{_unique_name()}/{_unique_name()}"
        parent = dirname.split("/")[0]
        self.assertFalse(self.disk.has(dirname))
        self.assertFalse(self.disk.has(parent))
        self.assertTrue(self.disk.rename("testRename.txt", f"{dirname}/testRename.txt"))
        self.assertTrue(self.disk.has(parent))
        self.assertTrue(self.disk.has(f"{dirname}/testRename.txt"))
        self.assertFalse(self.disk.has("testRename.txt"))

    def test_rename_dir(self):
        self.disk.write("a/testRenameDir.txt", "testRename", {})
        dirname = _unique_name()
        self.assertTrue(self.disk.has("a"))
        self.assertTrue(self.disk.has("a/testRenameDir.txt"))
        self.assertFalse(self.disk.has(dirname))
        self.assertTrue(self.disk.rename("a", dirname))
        self.assertTrue(self.disk.has(dirname))
        self.assertTrue(self.disk.has(f"{dirname}/testRenameDir.txt"))
        self.assertFalse(self.disk.has("a"))
        self.assertFalse(self.disk.has("a/testRenameDir.txt"))

    def test_rename_onto_existing(self):
        self.disk.write("first.txt", "first")
        self.disk.write("second.txt", "second")
        with self.assertRaises(FileExists):
            self.disk.rename("first.txt", "second.txt")
        self.assertEqual(b"second", self.disk.read("second.txt"))

    def test_rename_dir_into_itself(self):
        self.disk.write("a/f.txt", "contents")
        with self.assertRaises(InvalidPath):
            self.disk.rename("a", "a/b")
        self.assertTrue(self.disk.has("a"))
        self.assertFalse(self.disk.has("a/b"))
        self.assertEqual(b"contents", self.disk.read("a/f.txt"))

    def test_write_nested(self):
        self.assertFalse(self.disk.has("a/b/c"))
        self.assertFalse(self.disk.has("a/b"))
        self.assertFalse(self.disk.has("a"))
        self.disk.write("a/b/c/writenested.txt", "nested")
        self.assertTrue(self.disk.has("a"))
        self.assertTrue(self.disk.has("a/b"))
        self.assertTrue(self.disk.has("a/b/c"))
        self.assertTrue(self.disk.has("a/b/c/writenested.txt"))

    def test_write_existing(self):
        self.disk.write("exists.txt", "original")
        with self.assertRaises(FileExists):
            self.disk.write("exists.txt", "replacement")
        self.assertEqual(b"original", self.disk.read("exists.txt"))

    def test_put(self):
        self.assertTrue(self.disk.put("put.txt", "first"))
        self.assertEqual(b"first", self.disk.read("put.txt"))
        self.assertTrue(self.disk.put("put.txt", "second"))
        self.assertEqual(b"second", self.disk.read("put.txt"))

    def test_read_and_delete(self):
        self.disk.write("once.txt", "read me once")
        self.assertEqual(b"read me once", self.disk.read_and_delete("once.txt"))
        self.assertFalse(self.disk.has("once.txt"))

    def test_mkdir_nested(self):
        self.assertFalse(self.disk.has("a/b/c"))
        self.assertFalse(self.disk.has("a/b"))
        self.assertFalse(self.disk.has("a"))
        self.disk.create_dir("a/b/c", {})
        self.assertTrue(self.disk.has("a"))
        self.assertTrue(self.disk.has("a/b"))
        self.assertTrue(self.disk.has("a/b/c"))

    def test_list_contents(self):
        self.disk.write("dirname/file.txt", "testListContents", {})
        contents = self.disk.list_contents("dirname", False)
        self.assertEqual(1, len(contents))
        self.assertIn("type", contents[0])
        self.assertEqual("dirname/file.txt", contents[0]["path"])

    def test_list_contents_recursive(self):
        self.disk.write("dirname/file.txt", "testListContentsRecursive", {})
        self.disk.write("dirname/other.txt", "testListContentsRecursive", {})
        contents = self.disk.list_contents("/", True)
        self.assertEqual(3, len(contents))
        self.assertEqual(1, len(self.disk.list_contents("/", False)))

    def test_get_size(self):
        self.disk.write("dummy.txt", "1234", {})
        result = self.disk.get_size("dummy.txt")
        self.assertIsInstance(result, int)
        self.assertEqual(4, result)

    def test_get_timestamp(self):
        self.disk.write("dummy.txt", "1234", {})
        result = self.disk.get_timestamp("dummy.txt")
        self.assertIsInstance(result, int)

    def test_get_mimetype(self):
        self.disk.write("text.txt", "contents", {})
        self.assertEqual("text/plain", self.disk.get_mimetype("text.txt"))

    def test_create_dir_fail(self):
        self.disk.write("fail.plz", "contents")
        self.assertFalse(self.disk.create_dir("fail.plz"))

    def test_create_dir_fail_leaves_no_directories(self):
        self.disk.write("fail.plz", "contents")
        self.assertFalse(self.disk.create_dir("fail.plz/sub/dir"))
        self.assertFalse(self.disk.has("fail.plz/sub"))
        self.assertEqual(b"contents", self.disk.read("fail.plz"))

    def test_create_dir_default_visibility(self):
        self.disk.create_dir("test-dir")
        self.assertEqual(Visibility.PRIVATE, self.disk.get_visibility("test-dir"))

    def test_visibility_publish(self):
        self.disk.create_dir("test-dir")
        self.disk.set_visibility("test-dir", "public")
        self.assertEqual(Visibility.PUBLIC, self.disk.get_visibility("test-dir"))
        self.disk.set_visibility("test-dir", "private")
        self.assertEqual(Visibility.PRIVATE, self.disk.get_visibility("test-dir"))

    def test_create_existing_dir_keeps_visibility(self):
        self.disk.create_dir("test-dir")
        self.disk.set_visibility("test-dir", "public")
        self.assertTrue(self.disk.create_dir("test-dir"))
        self.assertEqual(Visibility.PUBLIC, self.disk.get_visibility("test-dir"))
        self.disk.create_dir("test-dir", {"visibility": "private"})
        self.assertEqual(Visibility.PRIVATE, self.disk.get_visibility("test-dir"))

    def test_delete_dir(self):
        self.disk.write("nested/dir/path.txt", "contents")
        self.assertTrue(self.disk.has("nested/dir"))
        self.disk.delete_dir("nested")
        self.assertFalse(self.disk.has("nested/dir/path.txt"))
        self.assertFalse(self.disk.has("nested/dir"))

    def test_mimetype_fallback_on_extension(self):
        self.disk.write("test.xlsx", "a")
        self.assertEqual(XLSX_MIME_TYPE, self.disk.get_mimetype("test.xlsx"))

    def test_delete_file_should_return_true(self):
        self.disk.write("delete.txt", "something")
        self.assertTrue(self.disk.delete("delete.txt"))

    def test_delete_missing_file(self):
        with self.assertRaises(FileNotFound):
            self.disk.delete("missing.txt")

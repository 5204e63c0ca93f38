import os
import pathlib
import shutil
import tempfile
import unittest as ut
from storecheck.conformance import AdapterConformanceSuite
from storecheck.storage import Filesystem, FileNotFound, StorageError, Visibility
from storecheck.storage.local import LocalAdapter, local_file_error_wrap


class LocalTestCase(ut.TestCase):

    def setUp(self):
        self.root = pathlib.Path(tempfile.mkdtemp(prefix="storecheck-"))
        self.addCleanup(shutil.rmtree, self.root, True)
        super().setUp()


class TestLocalAdapterConformance(AdapterConformanceSuite, LocalTestCase):

    def create_adapter(self):
        return LocalAdapter(self.root / "storage", permissions={})

    def test_root_left_in_place(self):
        self.disk.write("file.txt", "contents")
        self.assertTrue((self.root / "storage" / "file.txt").is_file())


class TestLocalAdapter(LocalTestCase):

    def test_creates_root(self):
        LocalAdapter(self.root / "a" / "b", permissions={})
        self.assertTrue((self.root / "a" / "b").is_dir())

    def test_root_is_a_file(self):
        (self.root / "file").write_text("x")
        self.assertRaises(StorageError, LocalAdapter, self.root / "file", permissions={})

    def test_permission_bits(self):
        disk = Filesystem(LocalAdapter(self.root, permissions={}))
        disk.write("public.txt", "x", {"visibility": "public"})
        disk.write("private.txt", "x")
        disk.create_dir("public-dir", {"visibility": "public"})
        self.assertEqual(0o644, os.stat(self.root / "public.txt").st_mode & 0o777)
        self.assertEqual(0o600, os.stat(self.root / "private.txt").st_mode & 0o777)
        self.assertEqual(0o755, os.stat(self.root / "public-dir").st_mode & 0o777)

    def test_permission_overrides(self):
        adapter = LocalAdapter(self.root, permissions={"file": {"public": "0664"}, "dir": {"private": 0o750}})
        disk = Filesystem(adapter)
        disk.write("shared.txt", "x", {"visibility": "public"})
        disk.create_dir("team")
        self.assertEqual(0o664, os.stat(self.root / "shared.txt").st_mode & 0o777)
        self.assertEqual(0o750, os.stat(self.root / "team").st_mode & 0o777)
        self.assertEqual(Visibility.PUBLIC, disk.get_visibility("shared.txt"))
        self.assertEqual(Visibility.PRIVATE, disk.get_visibility("team"))

    def test_bad_permission_overrides(self):
        self.assertRaises(StorageError, LocalAdapter, self.root, permissions={"socket": {"public": 0o777}})
        self.assertRaises(StorageError, LocalAdapter, self.root, permissions={"file": {"world": 0o777}})

    def test_write_below_file(self):
        adapter = LocalAdapter(self.root, permissions={})
        adapter.write("file.txt", b"contents", {})
        self.assertFalse(adapter.write("file.txt/child.txt", b"contents", {}))

    def test_read_stream_is_a_file(self):
        disk = Filesystem(LocalAdapter(self.root, permissions={}))
        disk.write("file.txt", "contents")
        with disk.read_stream("file.txt") as stream:
            self.assertEqual(b"contents", stream.read())

    def test_build(self):
        adapter = LocalAdapter.build(f"file://{self.root}", permissions={})
        self.assertEqual(str(self.root), adapter.get_path_prefix())
        self.assertTrue(LocalAdapter.supports_target("/anything"))


class TestLocalErrorWrap(ut.TestCase):

    def test_not_found(self):

        @local_file_error_wrap
        def _open():
            raise FileNotFoundError(2, "No such file", "/tmp/missing")

        with self.assertRaises(FileNotFound) as ctx:
            _open()
        self.assertEqual("/tmp/missing", ctx.exception.path)
        self.assertIn("[STORAGE-1002]", str(ctx.exception))

    def test_permission_denied(self):

        @local_file_error_wrap
        def _open():
            raise PermissionError()

        with self.assertRaises(StorageError) as ctx:
            _open()
        self.assertTrue(ctx.exception.is_recoverable)
        self.assertIn("[STORAGE-1003]", str(ctx.exception))

    def test_storage_errors_pass_through(self):

        @local_file_error_wrap
        def _fail():
            raise FileNotFound("x")

        self.assertRaises(FileNotFound, _fail)

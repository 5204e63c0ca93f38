import unittest as ut
from storecheck.storage import paths
from storecheck.storage.base import InvalidPath, RootViolation


class TestNormalizePath(ut.TestCase):

    def test_root_spellings(self):
        for root in ("", ".", "/", "\\", "//", "./", "/./", None):
            self.assertEqual(paths.normalize_path(root), "", root)

    def test_leading_and_trailing_slashes(self):
        self.assertEqual(paths.normalize_path("/a/b/"), "a/b")

    def test_backslashes(self):
        self.assertEqual(paths.normalize_path("a\\b\\c.txt"), "a/b/c.txt")

    def test_dot_segments(self):
        self.assertEqual(paths.normalize_path("a/./b//c"), "a/b/c")

    def test_parent_segments(self):
        self.assertEqual(paths.normalize_path("a/b/../c"), "a/c")
        self.assertEqual(paths.normalize_path("a/.."), "")

    def test_escaping_root(self):
        self.assertRaises(InvalidPath, paths.normalize_path, "..")
        self.assertRaises(InvalidPath, paths.normalize_path, "a/../../b")
        self.assertRaises(InvalidPath, paths.normalize_path, "/../etc/passwd")

    def test_invalid_path_is_not_root_violation(self):
        with self.assertRaises(InvalidPath) as ctx:
            paths.normalize_path("..")
        self.assertNotIsInstance(ctx.exception, RootViolation)
        self.assertIn("[STORAGE-1007]", str(ctx.exception))
        self.assertFalse(ctx.exception.is_recoverable)

    def test_control_characters(self):
        self.assertEqual(paths.normalize_path("fi\x00le\x1f.txt\x7f"), "file.txt")

    def test_zero_is_a_name(self):
        self.assertEqual(paths.normalize_path("0"), "0")


class TestPathHelpers(ut.TestCase):

    def test_dirname(self):
        self.assertEqual(paths.dirname("a/b/c.txt"), "a/b")
        self.assertEqual(paths.dirname("c.txt"), "")

    def test_ancestors(self):
        self.assertEqual(list(paths.ancestors("a/b/c.txt")), ["a", "a/b"])
        self.assertEqual(list(paths.ancestors("c.txt")), [])

    def test_prefixes(self):
        self.assertEqual(list(paths.prefixes("a/b/c")), ["a", "a/b", "a/b/c"])
        self.assertEqual(list(paths.prefixes("")), [])

    def test_is_child_of(self):
        self.assertTrue(paths.is_child_of("a/b", "a"))
        self.assertTrue(paths.is_child_of("a/b/c", "a"))
        self.assertFalse(paths.is_child_of("a/b/c", "a", recursive=False))
        self.assertFalse(paths.is_child_of("ab/c", "a"))
        self.assertFalse(paths.is_child_of("a", "a"))
        self.assertTrue(paths.is_child_of("a", ""))
        self.assertFalse(paths.is_child_of("a/b", "", recursive=False))

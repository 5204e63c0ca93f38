import unittest as ut
from storecheck.storage.mime import MimeTypeDetector


PNG_HEADER = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"


class TestMimeTypeDetector(ut.TestCase):

    def setUp(self):
        self.detector = MimeTypeDetector()

    def test_plain_text(self):
        self.assertEqual("text/plain", self.detector.detect("text.txt", b"contents"))

    def test_extension_fallback(self):
        self.assertEqual(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            self.detector.detect("test.xlsx", b"a")
        )

    def test_content_wins_over_extension(self):
        self.assertEqual("image/png", self.detector.detect("picture.txt", PNG_HEADER))

    def test_empty_contents_use_extension(self):
        self.assertEqual("application/json", self.detector.detect("data.json", b""))

    def test_no_contents(self):
        self.assertEqual("text/html", self.detector.detect("index.html"))

    def test_unknown_everything(self):
        self.assertEqual("text/plain", self.detector.detect("README", b"hello world"))

    def test_extra_types(self):
        detector = MimeTypeDetector({"lst": "application/x-listing"})
        self.assertEqual("application/x-listing", detector.detect("files.lst", b"abc"))

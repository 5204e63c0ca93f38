import io
import unittest as ut
from unittest import mock
from urllib.parse import urlparse
from storecheck.conformance import AdapterConformanceSuite, run_conformance
from storecheck.storage import Capability, Filesystem
from storecheck.storage.memory import MemoryAdapter


class SignedUrlMemoryAdapter(MemoryAdapter):
    """Memory adapter that hands out URLs for its files."""

    def capabilities(self):
        return frozenset({Capability.TEMPORARY_URL})

    def get_temporary_url(self, path: str, expires: int = 3600) -> str:
        return f"https://files.example.test/{self._key(path)}?expires={expires}"


class TestTemporaryUrlConformance(AdapterConformanceSuite, ut.TestCase):

    def create_adapter(self):
        return SignedUrlMemoryAdapter(storage=self.storage)

    def setUp(self):
        self.storage = {"files": {}, "dirs": {}}
        patcher = mock.patch("storecheck.conformance.suite.requests.get", side_effect=self._fake_get)
        self.fake_get = patcher.start()
        self.addCleanup(patcher.stop)
        super().setUp()

    def _fake_get(self, url, timeout=None):
        key = urlparse(url).path.lstrip("/")
        response = mock.Mock()
        response.content = self.storage["files"][key]["contents"]
        return response

    def test_url_is_fetched(self):
        self.test_temporary_url()
        self.fake_get.assert_called_once()
        self.assertEqual(30.0, self.fake_get.call_args.kwargs["timeout"])


class TestTemporaryUrlCapability(ut.TestCase):

    def test_capability_read_once(self):
        adapter = SignedUrlMemoryAdapter()
        disk = Filesystem(adapter)
        self.assertTrue(disk.supports(Capability.TEMPORARY_URL))
        self.assertEqual(frozenset({Capability.TEMPORARY_URL}), disk.capabilities)
        with mock.patch.object(SignedUrlMemoryAdapter, "capabilities", return_value=frozenset()):
            self.assertTrue(disk.supports(Capability.TEMPORARY_URL))

    def test_skipped_without_capability(self):
        result = run_conformance(MemoryAdapter, stream=io.StringIO())
        self.assertTrue(result.wasSuccessful())
        skipped = [test.id().split(".")[-1] for test, reason in result.skipped]
        self.assertEqual(["test_temporary_url"], skipped)

import pathlib
import shutil
import tempfile
import unittest as ut
from storecheck.exc import ConfigError
from storecheck.util import DynamicObjectLoadError
from storecheck.storage import AdapterController, Filesystem
from storecheck.storage.local import LocalAdapter
from storecheck.storage.memory import MemoryAdapter


class FakeConfig:

    def __init__(self, values: dict):
        self._values = values

    def _lookup(self, keys, default):
        value = self._values
        for key in keys:
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def as_str(self, keys, default=None):
        return self._lookup(keys, default)

    def as_dict(self, keys, default=None):
        return self._lookup(keys, default)


class ScratchAdapter(MemoryAdapter):

    @staticmethod
    def supports_target(target: str) -> bool:
        return target.startswith("scratch://")

    @classmethod
    def build(cls, target: str, **kwargs):
        return cls(target[10:], **kwargs)


class TestAdapterController(ut.TestCase):

    def setUp(self):
        self.controller = AdapterController()
        self.root = pathlib.Path(tempfile.mkdtemp(prefix="storecheck-"))
        self.addCleanup(shutil.rmtree, self.root, True)

    def test_memory_target(self):
        adapter = self.controller.get_adapter("memory://tenant")
        self.assertIsInstance(adapter, MemoryAdapter)
        self.assertEqual("tenant", adapter.get_path_prefix())

    def test_default_target(self):
        adapter = self.controller.get_adapter(str(self.root / "data"), permissions={})
        self.assertIsInstance(adapter, LocalAdapter)
        self.assertTrue((self.root / "data").is_dir())

    def test_path_object(self):
        adapter = self.controller.get_adapter(self.root, permissions={})
        self.assertIsInstance(adapter, LocalAdapter)
        self.assertEqual(str(self.root.resolve()), adapter.get_path_prefix())

    def test_register(self):
        self.controller.register(ScratchAdapter)
        self.controller.register(ScratchAdapter)
        self.assertEqual(1, self.controller.adapter_classes.count(ScratchAdapter))
        self.assertIsInstance(self.controller.get_adapter("scratch://x"), ScratchAdapter)
        self.assertIn(LocalAdapter, self.controller.known_adapters())

    def test_filesystem(self):
        disk = self.controller.filesystem("memory://")
        self.assertIsInstance(disk, Filesystem)
        self.assertIsInstance(disk.get_adapter(), MemoryAdapter)

    def test_load_adapter(self):
        adapter = self.controller.load_adapter("storecheck.storage.memory.MemoryAdapter", path_prefix="x")
        self.assertIsInstance(adapter, MemoryAdapter)
        self.assertEqual("x", adapter.get_path_prefix())

    def test_load_adapter_not_an_adapter(self):
        self.assertRaises(ConfigError, self.controller.load_adapter, "storecheck.storage.filesystem.Filesystem")
        self.assertRaises(DynamicObjectLoadError, self.controller.load_adapter, "storecheck.storage.memory.Nope")
        self.assertRaises(DynamicObjectLoadError, self.controller.load_adapter, "Nope")

    def test_configured_class(self):
        self.controller.config = FakeConfig({"storecheck": {"adapter": {
            "class": "storecheck.storage.local.LocalAdapter",
            "options": {"root": str(self.root), "permissions": {}},
        }}})
        adapter = self.controller.configured_adapter()
        self.assertIsInstance(adapter, LocalAdapter)
        self.assertEqual(str(self.root), adapter.get_path_prefix())

    def test_configured_target(self):
        self.controller.config = FakeConfig({"storecheck": {"adapter": {"target": "memory://configured"}}})
        adapter = self.controller.configured_adapter()
        self.assertIsInstance(adapter, MemoryAdapter)
        self.assertEqual("configured", adapter.get_path_prefix())

    def test_nothing_configured(self):
        self.controller.config = FakeConfig({})
        with self.assertRaises(ConfigError) as ctx:
            self.controller.configured_adapter()
        self.assertIn("[CONFIG-1000]", str(ctx.exception))

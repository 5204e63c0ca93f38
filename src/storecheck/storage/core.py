import pathlib
import typing as t
import zirconium as zr
import zrlog
from autoinject import injector
from storecheck.exc import ConfigError
from storecheck.util import dynamic_object
from .base import BaseStorageAdapter
from .filesystem import Filesystem
from .memory import MemoryAdapter
from .local import LocalAdapter


@injector.injectable_global
class AdapterController:
    """Controller class that identifies the correct adapter for a given target string.

        memory://PREFIX -> MemoryAdapter
        file://PATH -> LocalAdapter
        (default or path-like) -> LocalAdapter

        Third-party adapters can be registered, or named by their dotted class path
        in the [storecheck.adapter] configuration section.
    """

    config: zr.ApplicationConfig = None

    @injector.construct
    def __init__(self):
        self.adapter_classes: list[type[BaseStorageAdapter]] = [
            MemoryAdapter,
        ]
        self.default_adapter = LocalAdapter
        self._log = zrlog.get_logger("storecheck.controller")

    def register(self, adapter_cls: type[BaseStorageAdapter]):
        """Add an adapter class, checked before the built-in ones."""
        if adapter_cls not in self.adapter_classes:
            self.adapter_classes.insert(0, adapter_cls)

    def known_adapters(self) -> list[type[BaseStorageAdapter]]:
        return [*self.adapter_classes, self.default_adapter]

    def get_adapter(self, target: t.Union[str, pathlib.Path], **kwargs) -> BaseStorageAdapter:
        """Build an appropriate adapter for the given target string."""
        if isinstance(target, pathlib.Path):
            return LocalAdapter(target.resolve(), **kwargs)
        for cls in self.adapter_classes:
            if cls.supports_target(target):
                self._log.debug(f"Target [{target}] handled by {cls.__name__}")
                return cls.build(target, **kwargs)
        return self.default_adapter.build(target, **kwargs)

    def load_adapter(self, cls_name: str, **kwargs) -> BaseStorageAdapter:
        """Build an adapter from its dotted class path."""
        adapter_cls = dynamic_object(cls_name)
        if not (isinstance(adapter_cls, type) and issubclass(adapter_cls, BaseStorageAdapter)):
            raise ConfigError(f"[{cls_name}] is not a storage adapter class", 1001)
        return adapter_cls(**kwargs)

    def configured_adapter(self) -> BaseStorageAdapter:
        """Build the adapter described in the [storecheck.adapter] configuration section."""
        options = self.config.as_dict(("storecheck", "adapter", "options"), default={})
        cls_name = self.config.as_str(("storecheck", "adapter", "class"), default=None)
        if cls_name:
            return self.load_adapter(cls_name, **options)
        target = self.config.as_str(("storecheck", "adapter", "target"), default=None)
        if target:
            return self.get_adapter(target, **options)
        raise ConfigError("No adapter configured, set storecheck.adapter.class or storecheck.adapter.target", 1000)

    def filesystem(self, target: t.Union[str, pathlib.Path], **kwargs) -> Filesystem:
        return Filesystem(self.get_adapter(target, **kwargs))

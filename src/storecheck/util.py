import typing as t
import importlib
import abc
from .exc import StorecheckError


class DynamicObjectLoadError(StorecheckError):
    pass


@t.runtime_checkable
class Readable(t.Protocol):

    @abc.abstractmethod
    def read(self, chunk_size: int) -> bytes:
        pass


def dynamic_object(cls_name):
    if "." not in cls_name:
        raise DynamicObjectLoadError(f"cls_name should be in format package.class [actual {cls_name}]", "DOBJ", 1000)
    package_dot_pos = cls_name.rfind(".")
    package = cls_name[0:package_dot_pos]
    specific_cls_name = cls_name[package_dot_pos + 1:]
    try:
        mod = importlib.import_module(package)
        return getattr(mod, specific_cls_name)
    except ModuleNotFoundError as ex:
        raise DynamicObjectLoadError(f"Package or module [{package}] not found", "DOBJ", 1001) from ex
    except AttributeError as ex:
        raise DynamicObjectLoadError(f"Object [{specific_cls_name}] not found in [{package}]", "DOBJ", 1002) from ex


def parse_option_pairs(pairs: t.Iterable[str]) -> dict[str, str]:
    """Turn ["key=value", ...] into a dictionary."""
    options = {}
    for pair in pairs or ():
        if "=" not in pair:
            raise StorecheckError(f"Option [{pair}] should be in format key=value", "OPTS", 1000)
        k, v = pair.split("=", 1)
        options[k.strip()] = v
    return options

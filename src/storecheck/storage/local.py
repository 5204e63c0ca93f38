"""Local directory adapter"""
import functools
import os
import pathlib
import shutil
import typing as t
import zirconium as zr
from autoinject import injector
from .base import BaseStorageAdapter, StorageError, FileNotFound, Visibility, read_in_chunks
from .mime import MimeTypeDetector
from storecheck.util import Readable
from . import paths


DEFAULT_PERMISSIONS = {
    "file": {
        "public": 0o644,
        "private": 0o600,
    },
    "dir": {
        "public": 0o755,
        "private": 0o700,
    },
}

# Bytes handed to the content sniffer when detecting mime types.
SNIFF_SIZE = 65536


def local_file_error_wrap(cb):
    """Converts typical local file-system errors into appropriate StorageErrors with recoverable set properly."""

    @functools.wraps(cb)
    def _inner(*args, **kwargs):
        try:
            return cb(*args, **kwargs)
        except StorageError:
            raise
        except FileNotFoundError as ex:
            raise FileNotFound(ex.filename) from ex
        except PermissionError as ex:
            raise StorageError(f"Access to local file denied", 1003, True) from ex
        except IsADirectoryError as ex:
            raise StorageError(f"Local file is a directory", 1004) from ex
        except NotADirectoryError as ex:
            raise StorageError(f"Local directory is not a directory", 1005) from ex
        except OSError as ex:
            raise StorageError(f"Exception processing local file: {ex.__class__.__name__}: {str(ex)}", 1005) from ex

    return _inner


def _merge_permissions(overrides: t.Optional[dict]) -> dict:
    merged = {k: dict(v) for k, v in DEFAULT_PERMISSIONS.items()}
    for entry_type, levels in (overrides or {}).items():
        if entry_type not in merged:
            raise StorageError(f"Unknown permission entry type [{entry_type}]", 1011)
        for level, mode in levels.items():
            Visibility.from_value(level)
            merged[entry_type][level] = int(mode, 8) if isinstance(mode, str) else int(mode)
    return merged


class LocalAdapter(BaseStorageAdapter):
    """Adapter for a directory on a local disk or accessible network drive.

        The path prefix is the directory all paths are resolved against. Visibility
        is stored in the permission bits, using the permission map (which can be
        overridden in the [storecheck.local.permissions] configuration section).
    """

    config: zr.ApplicationConfig = None

    @injector.construct
    def __init__(self,
                 root: t.Union[str, pathlib.Path],
                 permissions: t.Optional[dict] = None,
                 mime_detector: MimeTypeDetector = None):
        super().__init__(str(root))
        if permissions is None:
            permissions = self.config.as_dict(("storecheck", "local", "permissions"), default={})
        self._permissions = _merge_permissions(permissions)
        self._mime = mime_detector or MimeTypeDetector()
        if self._path_prefix:
            self._ensure_root(pathlib.Path(self._path_prefix))

    @local_file_error_wrap
    def _ensure_root(self, root: pathlib.Path):
        root = root.expanduser()
        if not root.exists():
            root.mkdir(parents=True)
        elif not root.is_dir():
            raise StorageError(f"Root [{root}] is not a directory", 1012)

    def _path(self, path: str) -> pathlib.Path:
        return pathlib.Path(self.apply_path_prefix(path)).expanduser()

    def _mode(self, entry_type: str, visibility: Visibility) -> int:
        return self._permissions[entry_type][visibility.value]

    @local_file_error_wrap
    def _ensure_directory(self, path: str) -> bool:
        """Create every missing directory along the path, unless one of them is a file."""
        for sub_path in paths.prefixes(path):
            local = self._path(sub_path)
            if local.exists() and not local.is_dir():
                return False
        for sub_path in paths.prefixes(path):
            local = self._path(sub_path)
            if not local.exists():
                local.mkdir()
                local.chmod(self._mode("dir", Visibility.PRIVATE))
        return True

    def has(self, path: str) -> bool:
        return self._path(path).exists()

    @local_file_error_wrap
    def write(self, path: str, contents: bytes, options: dict) -> t.Union[dict, bool]:
        if not self._ensure_directory(paths.dirname(path)):
            return False
        local = self._path(path)
        if local.is_dir():
            return False
        local.write_bytes(contents)
        local.chmod(self._mode("file", Visibility.from_value(options.get("visibility"), Visibility.PRIVATE)))
        return self._describe(path, local)

    @local_file_error_wrap
    def write_stream(self, path: str, stream: Readable, options: dict) -> t.Union[dict, bool]:
        if not self._ensure_directory(paths.dirname(path)):
            return False
        local = self._path(path)
        if local.is_dir():
            return False
        self._write_chunks(local, read_in_chunks(stream))
        local.chmod(self._mode("file", Visibility.from_value(options.get("visibility"), Visibility.PRIVATE)))
        return self._describe(path, local)

    @local_file_error_wrap
    def _write_chunks(self, local: pathlib.Path, chunks: t.Iterable[bytes]):
        with open(local, "wb") as dest:
            for chunk in chunks:
                dest.write(chunk)

    @local_file_error_wrap
    def update(self, path: str, contents: bytes, options: dict) -> t.Union[dict, bool]:
        local = self._path(path)
        if not local.is_file():
            return False
        local.write_bytes(contents)
        if options.get("visibility") is not None:
            local.chmod(self._mode("file", Visibility.from_value(options["visibility"])))
        return self._describe(path, local)

    @local_file_error_wrap
    def update_stream(self, path: str, stream: Readable, options: dict) -> t.Union[dict, bool]:
        local = self._path(path)
        if not local.is_file():
            return False
        self._write_chunks(local, read_in_chunks(stream))
        if options.get("visibility") is not None:
            local.chmod(self._mode("file", Visibility.from_value(options["visibility"])))
        return self._describe(path, local)

    @local_file_error_wrap
    def read(self, path: str) -> t.Optional[bytes]:
        local = self._path(path)
        if not local.is_file():
            return None
        return local.read_bytes()

    @local_file_error_wrap
    def read_stream(self, path: str) -> t.Optional[t.BinaryIO]:
        local = self._path(path)
        if not local.is_file():
            return None
        return open(local, "rb")

    @local_file_error_wrap
    def rename(self, path: str, new_path: str) -> bool:
        if not self._ensure_directory(paths.dirname(new_path)):
            return False
        os.replace(self._path(path), self._path(new_path))
        return True

    @local_file_error_wrap
    def copy(self, path: str, new_path: str) -> bool:
        local = self._path(path)
        if not local.is_file():
            return False
        if not self._ensure_directory(paths.dirname(new_path)):
            return False
        target = self._path(new_path)
        shutil.copyfile(local, target)
        shutil.copymode(local, target)
        return True

    @local_file_error_wrap
    def delete(self, path: str) -> bool:
        local = self._path(path)
        if not local.is_file():
            return False
        local.unlink()
        return True

    @local_file_error_wrap
    def delete_dir(self, dirname: str) -> bool:
        local = self._path(dirname)
        if not local.is_dir():
            return False
        shutil.rmtree(local)
        return True

    @local_file_error_wrap
    def create_dir(self, dirname: str, options: dict) -> t.Union[dict, bool]:
        local = self._path(dirname)
        existed = local.is_dir()
        if not self._ensure_directory(dirname):
            return False
        if not existed or options.get("visibility") is not None:
            visibility = Visibility.from_value(options.get("visibility"), Visibility.PRIVATE)
            local.chmod(self._mode("dir", visibility))
        return {"type": "dir", "path": dirname}

    @local_file_error_wrap
    def list_contents(self, directory: str = "", recursive: bool = False) -> list[dict]:
        base = self._path(directory)
        if not base.is_dir():
            return []
        results = []
        work = [(directory, base)]
        while work:
            rel_dir, local_dir = work.pop()
            for child in local_dir.iterdir():
                rel_path = f"{rel_dir}/{child.name}" if rel_dir else child.name
                results.append(self._describe(rel_path, child))
                if recursive and child.is_dir():
                    work.append((rel_path, child))
        results.sort(key=lambda x: x["path"])
        return results

    @local_file_error_wrap
    def get_metadata(self, path: str) -> t.Optional[dict]:
        local = self._path(path)
        if not local.exists():
            return None
        return self._describe(path, local)

    @local_file_error_wrap
    def get_mimetype(self, path: str) -> t.Optional[str]:
        local = self._path(path)
        if not local.is_file():
            return None
        with open(local, "rb") as src:
            return self._mime.detect(path, src.read(SNIFF_SIZE))

    @local_file_error_wrap
    def set_visibility(self, path: str, visibility: Visibility) -> bool:
        local = self._path(path)
        if not local.exists():
            return False
        local.chmod(self._mode("dir" if local.is_dir() else "file", visibility))
        return True

    def _describe(self, path: str, local: pathlib.Path) -> dict:
        stat = local.stat()
        entry_type = "dir" if local.is_dir() else "file"
        public_mode = self._permissions[entry_type]["public"]
        info = {
            "type": entry_type,
            "path": path,
            "timestamp": int(stat.st_mtime),
            "visibility": "public" if (stat.st_mode & 0o777) == public_mode else "private",
        }
        if entry_type == "file":
            info["size"] = stat.st_size
        return info

    @staticmethod
    def supports_target(target: str) -> bool:
        return True

    @classmethod
    def build(cls, target: str, **kwargs) -> BaseStorageAdapter:
        if target.startswith("file://"):
            return cls(pathlib.Path(target[7:]), **kwargs)
        return cls(pathlib.Path(target), **kwargs)

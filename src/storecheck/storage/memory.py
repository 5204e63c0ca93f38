"""In-memory adapter"""
import time
import typing as t
from .base import BaseStorageAdapter, Visibility
from .mime import MimeTypeDetector
from . import paths


class MemoryAdapter(BaseStorageAdapter):
    """Adapter that keeps every entry in a dictionary.

        Mostly useful to check the conformance suite itself and as a starting point
        for new adapters. The path prefix namespaces the stored keys so that two
        adapters with different prefixes can share the same storage.
    """

    def __init__(self, path_prefix: str = "", storage: t.Optional[dict] = None, mime_detector: MimeTypeDetector = None):
        super().__init__(path_prefix)
        self._storage = storage if storage is not None else {"files": {}, "dirs": {}}
        self._mime = mime_detector or MimeTypeDetector()

    @property
    def _files(self) -> dict[str, dict]:
        return self._storage["files"]

    @property
    def _dirs(self) -> dict[str, Visibility]:
        return self._storage["dirs"]

    def _key(self, path: str) -> str:
        return paths.normalize_path(self.apply_path_prefix(path))

    def _relative(self, key: str) -> str:
        prefix = paths.normalize_path(self._path_prefix)
        if not prefix:
            return key
        return key[len(prefix) + 1:]

    def _collides_with_file(self, key: str) -> bool:
        return any(p in self._files for p in paths.prefixes(key))

    def _ensure_parents(self, key: str) -> bool:
        for parent in paths.ancestors(key):
            if parent in self._files:
                return False
        for parent in paths.ancestors(key):
            self._dirs.setdefault(parent, Visibility.PRIVATE)
        return True

    def has(self, path: str) -> bool:
        key = self._key(path)
        return key in self._files or key in self._dirs

    def write(self, path: str, contents: bytes, options: dict) -> t.Union[dict, bool]:
        key = self._key(path)
        if key in self._dirs or not self._ensure_parents(key):
            return False
        self._files[key] = {
            "contents": bytes(contents),
            "timestamp": int(time.time()),
            "visibility": Visibility.from_value(options.get("visibility"), Visibility.PRIVATE),
        }
        return self._file_info(key)

    def update(self, path: str, contents: bytes, options: dict) -> t.Union[dict, bool]:
        key = self._key(path)
        if key not in self._files:
            return False
        entry = self._files[key]
        entry["contents"] = bytes(contents)
        entry["timestamp"] = int(time.time())
        if options.get("visibility") is not None:
            entry["visibility"] = Visibility.from_value(options["visibility"])
        return self._file_info(key)

    def read(self, path: str) -> t.Optional[bytes]:
        key = self._key(path)
        if key not in self._files:
            return None
        return self._files[key]["contents"]

    def rename(self, path: str, new_path: str) -> bool:
        key = self._key(path)
        new_key = self._key(new_path)
        if not self._ensure_parents(new_key):
            return False
        if key in self._files:
            self._files[new_key] = self._files.pop(key)
            return True
        if key not in self._dirs:
            return False
        for store in (self._files, self._dirs):
            for old in [k for k in store if k == key or paths.is_child_of(k, key)]:
                store[new_key + old[len(key):]] = store.pop(old)
        return True

    def copy(self, path: str, new_path: str) -> bool:
        key = self._key(path)
        new_key = self._key(new_path)
        if key not in self._files or not self._ensure_parents(new_key):
            return False
        self._files[new_key] = dict(self._files[key])
        self._files[new_key]["timestamp"] = int(time.time())
        return True

    def delete(self, path: str) -> bool:
        return self._files.pop(self._key(path), None) is not None

    def delete_dir(self, dirname: str) -> bool:
        key = self._key(dirname)
        if key not in self._dirs:
            return False
        for store in (self._files, self._dirs):
            for old in [k for k in store if k == key or paths.is_child_of(k, key)]:
                del store[old]
        return True

    def create_dir(self, dirname: str, options: dict) -> t.Union[dict, bool]:
        key = self._key(dirname)
        if self._collides_with_file(key):
            return False
        self._ensure_parents(key)
        if key not in self._dirs or options.get("visibility") is not None:
            self._dirs[key] = Visibility.from_value(options.get("visibility"), Visibility.PRIVATE)
        return {"type": "dir", "path": dirname}

    def list_contents(self, directory: str = "", recursive: bool = False) -> list[dict]:
        key = self._key(directory)
        if key and key not in self._dirs:
            return []
        results = []
        for file_key in self._files:
            if paths.is_child_of(file_key, key, recursive):
                results.append(self._file_info(file_key))
        for dir_key in self._dirs:
            if paths.is_child_of(dir_key, key, recursive):
                results.append(self._dir_info(dir_key))
        results.sort(key=lambda x: x["path"])
        return results

    def get_metadata(self, path: str) -> t.Optional[dict]:
        key = self._key(path)
        if key in self._files:
            return self._file_info(key)
        if key in self._dirs:
            return self._dir_info(key)
        return None

    def get_mimetype(self, path: str) -> t.Optional[str]:
        contents = self.read(path)
        if contents is None:
            return None
        return self._mime.detect(path, contents)

    def set_visibility(self, path: str, visibility: Visibility) -> bool:
        key = self._key(path)
        if key in self._files:
            self._files[key]["visibility"] = visibility
        elif key in self._dirs:
            self._dirs[key] = visibility
        else:
            return False
        return True

    def _file_info(self, key: str) -> dict:
        entry = self._files[key]
        return {
            "type": "file",
            "path": self._relative(key),
            "size": len(entry["contents"]),
            "timestamp": entry["timestamp"],
            "visibility": entry["visibility"].value,
        }

    def _dir_info(self, key: str) -> dict:
        return {
            "type": "dir",
            "path": self._relative(key),
            "visibility": self._dirs[key].value,
        }

    @staticmethod
    def supports_target(target: str) -> bool:
        return target.startswith("memory://")

    @classmethod
    def build(cls, target: str, **kwargs) -> BaseStorageAdapter:
        return cls(target[9:], **kwargs)

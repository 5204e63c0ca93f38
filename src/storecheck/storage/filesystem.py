from __future__ import annotations
import typing as t
import zrlog
from .base import (
    BaseStorageAdapter, Capability, Visibility, ErrorKind,
    StorageError, FileNotFound, FileExists, RootViolation, InvalidPath, OperationFailed, UnsupportedOperation,
    adapter_error_wrap, rewind_stream,
)
from .paths import normalize_path, is_child_of
from storecheck.util import Readable


class OperationResult:
    """Outcome of Filesystem.attempt()."""

    def __init__(self, value=None, error: t.Optional[StorageError] = None):
        self.value = value
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> t.Optional[ErrorKind]:
        return None if self.error is None else self.error.kind

    def __bool__(self):
        return self.ok

    def __repr__(self):
        if self.ok:
            return f"<OperationResult ok value={self.value!r}>"
        return f"<OperationResult {self.kind.value}: {self.error}>"


# Failures that are an expected outcome of an operation rather than a broken contract.
RECOVERABLE_KINDS = frozenset({
    ErrorKind.NOT_FOUND,
    ErrorKind.EXISTS,
    ErrorKind.OPERATION_FAILED,
})


class Filesystem:
    """Uniform front-end over a storage adapter.

        Every path is normalized before it reaches the adapter, so adapters never
        see the root (except when listing it) or a path that escapes it. Existence
        rules are checked here so every adapter reports the same error kinds:

        - reading, deleting or inspecting a missing path raises FileNotFound;
        - writing, copying or renaming onto an existing path raises FileExists;
        - deleting the root raises RootViolation;
        - a path climbing above the root, or renaming a directory into itself,
          raises InvalidPath.

        Operations that can legitimately fail without an error (create_dir onto a
        file, for example) return False.
    """

    def __init__(self, adapter: BaseStorageAdapter, default_options: t.Optional[dict] = None):
        self._adapter = adapter
        self._default_options = dict(default_options or {})
        self._capabilities = frozenset(adapter.capabilities())
        self._log = zrlog.get_logger("storecheck.filesystem")

    def __str__(self):
        return f"Filesystem({self._adapter})"

    def get_adapter(self) -> BaseStorageAdapter:
        return self._adapter

    @property
    def capabilities(self) -> frozenset[Capability]:
        return self._capabilities

    def supports(self, capability: Capability) -> bool:
        return capability in self._capabilities

    def _options(self, options: t.Optional[dict]) -> dict:
        merged = dict(self._default_options)
        merged.update(options or {})
        if merged.get("visibility") is not None:
            merged["visibility"] = Visibility.from_value(merged["visibility"]).value
        return merged

    def _call(self, operation: str, *args):
        self._log.debug(f"{operation}: {', '.join(repr(a) for a in args if isinstance(a, str))}")
        return adapter_error_wrap(getattr(self._adapter, operation))(*args)

    def assert_present(self, path: str):
        if path == "" or not self._call("has", path):
            raise FileNotFound(path)

    def assert_absent(self, path: str):
        if path == "" or self._call("has", path):
            raise FileExists(path)

    def has(self, path: str) -> bool:
        """Check if a file or directory exists. The root never exists."""
        try:
            path = normalize_path(path)
            if path == "":
                return False
            return bool(self._call("has", path))
        except StorageError as ex:
            if ex.kind == ErrorKind.INVALID_PATH:
                self._log.debug(f"Path [{path}] is outside of the root")
            else:
                self._log.warning(f"Existence check failed for [{path}]: {ex}")
            return False

    def write(self, path: str, contents: t.Union[bytes, str], options: t.Optional[dict] = None) -> bool:
        path = normalize_path(path)
        self.assert_absent(path)
        return bool(self._call("write", path, _as_bytes(contents), self._options(options)))

    def write_stream(self, path: str, stream: Readable, options: t.Optional[dict] = None) -> bool:
        path = normalize_path(path)
        self.assert_absent(path)
        rewind_stream(stream)
        return bool(self._call("write_stream", path, stream, self._options(options)))

    def put(self, path: str, contents: t.Union[bytes, str], options: t.Optional[dict] = None) -> bool:
        """Write the file if it is missing, update it otherwise."""
        path = normalize_path(path)
        if path == "":
            raise FileExists(path)
        if self._call("has", path):
            return bool(self._call("update", path, _as_bytes(contents), self._options(options)))
        return bool(self._call("write", path, _as_bytes(contents), self._options(options)))

    def put_stream(self, path: str, stream: Readable, options: t.Optional[dict] = None) -> bool:
        path = normalize_path(path)
        if path == "":
            raise FileExists(path)
        rewind_stream(stream)
        if self._call("has", path):
            return bool(self._call("update_stream", path, stream, self._options(options)))
        return bool(self._call("write_stream", path, stream, self._options(options)))

    def update(self, path: str, contents: t.Union[bytes, str], options: t.Optional[dict] = None) -> bool:
        path = normalize_path(path)
        self.assert_present(path)
        return bool(self._call("update", path, _as_bytes(contents), self._options(options)))

    def update_stream(self, path: str, stream: Readable, options: t.Optional[dict] = None) -> bool:
        path = normalize_path(path)
        self.assert_present(path)
        rewind_stream(stream)
        return bool(self._call("update_stream", path, stream, self._options(options)))

    def read(self, path: str) -> bytes:
        path = normalize_path(path)
        self.assert_present(path)
        contents = self._call("read", path)
        if contents is None:
            raise OperationFailed("read", path)
        return contents

    def read_stream(self, path: str) -> t.BinaryIO:
        """Open a stream on the file. The caller is responsible for closing it."""
        path = normalize_path(path)
        self.assert_present(path)
        stream = self._call("read_stream", path)
        if stream is None:
            raise OperationFailed("read_stream", path)
        return stream

    def read_and_delete(self, path: str) -> bytes:
        contents = self.read(path)
        self.delete(path)
        return contents

    def rename(self, path: str, new_path: str) -> bool:
        path = normalize_path(path)
        new_path = normalize_path(new_path)
        self.assert_present(path)
        self.assert_absent(new_path)
        if is_child_of(new_path, path):
            raise InvalidPath(new_path)
        return bool(self._call("rename", path, new_path))

    def copy(self, path: str, new_path: str) -> bool:
        path = normalize_path(path)
        new_path = normalize_path(new_path)
        self.assert_present(path)
        self.assert_absent(new_path)
        return bool(self._call("copy", path, new_path))

    def delete(self, path: str) -> bool:
        path = normalize_path(path)
        self.assert_present(path)
        return bool(self._call("delete", path))

    def delete_dir(self, dirname: str) -> bool:
        dirname = normalize_path(dirname)
        if dirname == "":
            raise RootViolation()
        return bool(self._call("delete_dir", dirname))

    def create_dir(self, dirname: str, options: t.Optional[dict] = None) -> bool:
        dirname = normalize_path(dirname)
        if dirname == "":
            return True
        return bool(self._call("create_dir", dirname, self._options(options)))

    def list_contents(self, directory: str = "", recursive: bool = False) -> list[dict]:
        directory = normalize_path(directory)
        return list(self._call("list_contents", directory, recursive) or [])

    def get_metadata(self, path: str) -> dict:
        path = normalize_path(path)
        self.assert_present(path)
        metadata = self._call("get_metadata", path)
        if not metadata:
            raise OperationFailed("get_metadata", path)
        return metadata

    def get_size(self, path: str) -> int:
        path = normalize_path(path)
        self.assert_present(path)
        size = self._call("get_size", path)
        if size is None:
            raise OperationFailed("get_size", path)
        return int(size)

    def get_timestamp(self, path: str) -> int:
        path = normalize_path(path)
        self.assert_present(path)
        timestamp = self._call("get_timestamp", path)
        if timestamp is None:
            raise OperationFailed("get_timestamp", path)
        return int(timestamp)

    def get_mimetype(self, path: str) -> str:
        path = normalize_path(path)
        self.assert_present(path)
        mime_type = self._call("get_mimetype", path)
        if not mime_type:
            raise OperationFailed("get_mimetype", path)
        return mime_type

    def get_visibility(self, path: str) -> Visibility:
        path = normalize_path(path)
        self.assert_present(path)
        visibility = self._call("get_visibility", path)
        if visibility is None:
            raise OperationFailed("get_visibility", path)
        return Visibility.from_value(visibility)

    def set_visibility(self, path: str, visibility: t.Union[Visibility, str]) -> bool:
        path = normalize_path(path)
        self.assert_present(path)
        return bool(self._call("set_visibility", path, Visibility.from_value(visibility)))

    def get_temporary_url(self, path: str, expires: int = 3600) -> str:
        if not self.supports(Capability.TEMPORARY_URL):
            raise UnsupportedOperation("get_temporary_url", self._adapter.__class__.__name__)
        path = normalize_path(path)
        self.assert_present(path)
        return self._call("get_temporary_url", path, expires)

    def attempt(self, operation: t.Callable, *args, **kwargs) -> OperationResult:
        """Run a Filesystem operation, returning expected failures as a result.

            NotFound, FileExists and OperationFailed come back as a failed
            OperationResult; contract violations (RootViolation, InvalidPath) and
            backend errors are raised.
        """
        try:
            return OperationResult(operation(*args, **kwargs))
        except StorageError as ex:
            if ex.kind not in RECOVERABLE_KINDS:
                raise
            self._log.debug(f"Recoverable failure in {getattr(operation, '__name__', operation)}: {ex}")
            return OperationResult(error=ex)


def _as_bytes(contents: t.Union[bytes, bytearray, str]) -> bytes:
    if isinstance(contents, str):
        return contents.encode("utf-8")
    return bytes(contents)

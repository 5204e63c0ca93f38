from __future__ import annotations
import functools
import io
import typing as t
import enum
from storecheck.exc import StorecheckError
from storecheck.util import Readable


DEFAULT_CHUNK_SIZE = 4194304


class Visibility(enum.Enum):
    """Access-control tag attached to files and directories."""

    PUBLIC = "public"
    PRIVATE = "private"

    @staticmethod
    def from_value(value: t.Union[Visibility, str, None], default: t.Optional[Visibility] = None) -> t.Optional[Visibility]:
        if value is None:
            return default
        if isinstance(value, Visibility):
            return value
        try:
            return Visibility(str(value).lower())
        except ValueError as ex:
            raise StorageError(f"Invalid visibility [{value}]", 1010) from ex


class Capability(enum.Enum):
    """Optional features an adapter may advertise."""

    TEMPORARY_URL = "temporary_url"


class ErrorKind(enum.Enum):

    NOT_FOUND = "not_found"
    EXISTS = "exists"
    ROOT_VIOLATION = "root_violation"
    INVALID_PATH = "invalid_path"
    OPERATION_FAILED = "operation_failed"
    UNSUPPORTED = "unsupported"
    BACKEND = "backend"


class StorageError(StorecheckError):
    """Error class specifically for storage errors."""

    kind = ErrorKind.BACKEND

    def __init__(self, msg, code, is_recoverable: bool = False):
        super().__init__(msg, "STORAGE", code, is_recoverable=is_recoverable)


class FileNotFound(StorageError):
    """A path that had to exist does not."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, path: str):
        super().__init__(f"File not found at path [{path}]", 1002, True)
        self.path = path


class FileExists(StorageError):
    """A path that had to be absent already exists."""

    kind = ErrorKind.EXISTS

    def __init__(self, path: str):
        super().__init__(f"File already exists at path [{path}]", 1001, True)
        self.path = path


class RootViolation(StorageError):
    """A destructive operation targeted the adapter root."""

    kind = ErrorKind.ROOT_VIOLATION

    def __init__(self, msg: str = "Root directories can not be deleted"):
        super().__init__(msg, 1006)


class InvalidPath(StorageError):
    """A path tried to escape the adapter root."""

    kind = ErrorKind.INVALID_PATH

    def __init__(self, path: str):
        super().__init__(f"Path is outside of the defined root, path: [{path}]", 1007)
        self.path = path


class OperationFailed(StorageError):
    """The adapter declined to perform an operation."""

    kind = ErrorKind.OPERATION_FAILED

    def __init__(self, operation: str, path: str):
        super().__init__(f"Operation [{operation}] failed for path [{path}]", 1008, True)
        self.operation = operation
        self.path = path


class UnsupportedOperation(StorageError):

    kind = ErrorKind.UNSUPPORTED

    def __init__(self, operation: str, adapter_name: str):
        super().__init__(f"Operation [{operation}] is not supported by [{adapter_name}]", 1009)


def read_in_chunks(readable: Readable, buffer_size: int = None) -> t.Iterable[bytes]:
    """Read in chunks from a readable object."""
    if buffer_size is None:
        buffer_size = DEFAULT_CHUNK_SIZE
    x = readable.read(buffer_size)
    while x:
        yield x
        x = readable.read(buffer_size)


def rewind_stream(stream):
    """Move a seekable stream back to its start if something already read from it."""
    if hasattr(stream, 'seekable') and stream.seekable() and stream.tell() != 0:
        stream.seek(0)


class BaseStorageAdapter:
    """Contract every storage backend implements.

        Paths given to an adapter are already normalized by the Filesystem: relative,
        slash-delimited, never escaping the root and never the root itself (except for
        listing). Adapters signal an expected failure by returning False (or None for
        read-style calls) and raise StorageError for backend problems.

        Entry descriptors are dictionaries with at least `type` ("file" or "dir") and
        `path`. Files also carry `size`, `timestamp` and `visibility`.
    """

    def __init__(self, path_prefix: str = ""):
        self._path_prefix = ""
        self.set_path_prefix(path_prefix)

    def __str__(self):
        return f"{self.__class__.__name__}({self._path_prefix})"

    def get_path_prefix(self) -> str:
        return self._path_prefix

    def set_path_prefix(self, prefix: t.Optional[str]):
        self._path_prefix = "" if prefix is None else str(prefix)

    def apply_path_prefix(self, path: str) -> str:
        """Prepend the path prefix to the given path."""
        if not self._path_prefix:
            return path
        if not path:
            return self._path_prefix
        return f"{self._path_prefix.rstrip('/')}/{path}"

    def capabilities(self) -> frozenset[Capability]:
        """Optional features supported by this adapter."""
        return frozenset()

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities()

    def has(self, path: str) -> bool:
        raise NotImplementedError

    def write(self, path: str, contents: bytes, options: dict) -> t.Union[dict, bool]:
        raise NotImplementedError

    def write_stream(self, path: str, stream: Readable, options: dict) -> t.Union[dict, bool]:
        """Drain the stream and write it. Adapters with native streaming override this."""
        buffer = io.BytesIO()
        for chunk in read_in_chunks(stream):
            buffer.write(chunk)
        return self.write(path, buffer.getvalue(), options)

    def update(self, path: str, contents: bytes, options: dict) -> t.Union[dict, bool]:
        raise NotImplementedError

    def update_stream(self, path: str, stream: Readable, options: dict) -> t.Union[dict, bool]:
        buffer = io.BytesIO()
        for chunk in read_in_chunks(stream):
            buffer.write(chunk)
        return self.update(path, buffer.getvalue(), options)

    def read(self, path: str) -> t.Optional[bytes]:
        raise NotImplementedError

    def read_stream(self, path: str) -> t.Optional[t.BinaryIO]:
        contents = self.read(path)
        if contents is None:
            return None
        return io.BytesIO(contents)

    def rename(self, path: str, new_path: str) -> bool:
        raise NotImplementedError

    def copy(self, path: str, new_path: str) -> bool:
        raise NotImplementedError

    def delete(self, path: str) -> bool:
        raise NotImplementedError

    def delete_dir(self, dirname: str) -> bool:
        raise NotImplementedError

    def create_dir(self, dirname: str, options: dict) -> t.Union[dict, bool]:
        raise NotImplementedError

    def list_contents(self, directory: str = "", recursive: bool = False) -> list[dict]:
        raise NotImplementedError

    def get_metadata(self, path: str) -> t.Optional[dict]:
        raise NotImplementedError

    def get_size(self, path: str) -> t.Optional[int]:
        metadata = self.get_metadata(path)
        return None if metadata is None else metadata.get('size')

    def get_timestamp(self, path: str) -> t.Optional[int]:
        metadata = self.get_metadata(path)
        return None if metadata is None else metadata.get('timestamp')

    def get_mimetype(self, path: str) -> t.Optional[str]:
        raise NotImplementedError

    def get_visibility(self, path: str) -> t.Optional[Visibility]:
        metadata = self.get_metadata(path)
        return None if metadata is None else Visibility.from_value(metadata.get('visibility'))

    def set_visibility(self, path: str, visibility: Visibility) -> bool:
        raise NotImplementedError

    def get_temporary_url(self, path: str, expires: int = 3600) -> str:
        """Build a URL that can be fetched over HTTP(S) to download the file."""
        raise UnsupportedOperation("get_temporary_url", self.__class__.__name__)

    @staticmethod
    def supports_target(target: str) -> bool:
        """Check if this adapter class can be built from the given target string."""
        return False

    @classmethod
    def build(cls, target: str, **kwargs) -> BaseStorageAdapter:
        """Construct an adapter from the given target string."""
        return cls(target, **kwargs)


def adapter_error_wrap(cb):
    """Wrap unexpected exceptions raised by an adapter into StorageError."""

    @functools.wraps(cb)
    def _inner(*args, **kwargs):
        try:
            return cb(*args, **kwargs)
        except StorageError:
            raise
        except Exception as ex:
            raise StorageError(f"Exception in storage adapter: {ex.__class__.__name__}: {str(ex)}", 1000) from ex

    return _inner

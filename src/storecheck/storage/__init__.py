"""
    Provides the storage adapter contract.

    An adapter implements the raw operations of a storage backend (BaseStorageAdapter).
    Callers never use it directly; they wrap it in a Filesystem, which normalizes
    paths and applies the same existence and root-protection rules whatever the
    backend is. That way an in-memory dictionary, a local directory and a remote
    object store all report a missing file as FileNotFound and refuse to delete the
    root with RootViolation.

    Some notes on paths: every path is relative to the adapter root and uses forward
    slashes. Backslashes are accepted and converted. The root itself can be spelled
    ".", "/", "\\", "//" or "" and never "exists" as far as has() is concerned, and a
    path that climbs above the root with ".." raises InvalidPath rather than being
    clamped.

    Optional features (temporary URLs for now) are advertised by the adapter through
    capabilities() and read once when the Filesystem is built.

    Use the AdapterController to build an adapter from a target string such as
    "memory://" or a directory path.
"""
from .base import (
    BaseStorageAdapter, Visibility, Capability, ErrorKind,
    StorageError, FileNotFound, FileExists, RootViolation, InvalidPath, OperationFailed, UnsupportedOperation,
)
from .filesystem import Filesystem, OperationResult
from .core import AdapterController

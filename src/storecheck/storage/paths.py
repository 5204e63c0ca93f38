"""Path normalization shared by the Filesystem and the adapters."""
import re
import typing as t
from .base import InvalidPath


_CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")


def normalize_path(path: t.Optional[str]) -> str:
    """Normalize a path into a relative, slash-delimited form.

        Backslashes become slashes, control characters are dropped, empty and `.`
        segments are removed and `..` segments pop their parent. The root of the
        adapter normalizes to the empty string. A `..` that would climb above the
        root raises InvalidPath.
    """
    if path is None:
        return ""
    original = str(path)
    cleaned = _CONTROL_CHARACTERS.sub("", original.replace("\\", "/"))
    parts = []
    for segment in cleaned.split("/"):
        if segment == "" or segment == ".":
            continue
        if segment == "..":
            if not parts:
                raise InvalidPath(original)
            parts.pop()
            continue
        parts.append(segment)
    return "/".join(parts)


def dirname(path: str) -> str:
    """Parent of a normalized path, the root being ""."""
    if "/" not in path:
        return ""
    return path[:path.rfind("/")]


def ancestors(path: str) -> t.Iterable[str]:
    """Yield every ancestor directory of a normalized path, top-most first."""
    parts = path.split("/")[:-1]
    for i in range(1, len(parts) + 1):
        yield "/".join(parts[:i])


def prefixes(path: str) -> t.Iterable[str]:
    """Yield the path and each of its ancestors, top-most first."""
    yield from ancestors(path)
    if path:
        yield path


def is_child_of(path: str, directory: str, recursive: bool = True) -> bool:
    """Check if a normalized path lies beneath a normalized directory."""
    if directory == "":
        return path != "" and (recursive or "/" not in path)
    if not path.startswith(directory + "/"):
        return False
    return recursive or "/" not in path[len(directory) + 1:]

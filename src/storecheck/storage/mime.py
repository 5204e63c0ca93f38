"""Mime type detection by content inspection with an extension-based fallback."""
import mimetypes
import typing as t
import magic
import zrlog


# Types libmagic reports when it cannot tell what the content is.
INCONCLUSIVE_TYPES = frozenset({
    "text/plain",
    "application/octet-stream",
    "application/x-empty",
    "inode/x-empty",
})

EXTRA_EXTENSION_TYPES = {
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".odt": "application/vnd.oasis.opendocument.text",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    ".odp": "application/vnd.oasis.opendocument.presentation",
    ".json": "application/json",
    ".toml": "application/toml",
    ".yaml": "application/yaml",
    ".yml": "application/yaml",
}


class MimeTypeDetector:
    """Detects mime types from content, falling back on the file extension."""

    def __init__(self, extra_types: t.Optional[dict[str, str]] = None):
        self._magic = magic.Magic(mime=True)
        self._log = zrlog.get_logger("storecheck.mimetypes")
        self._types = mimetypes.MimeTypes()
        for ext, mime_type in EXTRA_EXTENSION_TYPES.items():
            self._types.add_type(mime_type, ext)
        for ext, mime_type in (extra_types or {}).items():
            self._types.add_type(mime_type, ext if ext.startswith(".") else f".{ext}")

    def detect(self, path: str, contents: t.Optional[bytes] = None) -> str:
        """Detect the mime type of a file."""
        sniffed = self.detect_from_contents(contents)
        if sniffed is not None and sniffed not in INCONCLUSIVE_TYPES:
            return sniffed
        by_extension = self.detect_from_path(path)
        if by_extension is not None:
            return by_extension
        return sniffed or "text/plain"

    def detect_from_contents(self, contents: t.Optional[bytes]) -> t.Optional[str]:
        if contents is None:
            return None
        try:
            return self._magic.from_buffer(contents)
        except magic.MagicException as ex:
            self._log.warning(f"Content sniffing failed: {ex}")
            return None

    def detect_from_path(self, path: str) -> t.Optional[str]:
        mime_type, _ = self._types.guess_type(path, strict=False)
        return mime_type

"""Extension based content-type lookup."""
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = MappingProxyType({
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
    ".pdf": "application/pdf",
    ".wasm": "application/wasm",
    ".txt": "text/plain",
    ".md": "text/markdown",
})


@dataclass(frozen=True)
class MimeTable:
    types: Mapping[str, str] = field(default_factory=lambda: MIME_TYPES)
    default: str = DEFAULT_MIME_TYPE

    def __post_init__(self):
        # keys are matched against lowercased extensions
        frozen = MappingProxyType({ext.lower(): mime for ext, mime in self.types.items()})
        object.__setattr__(self, "types", frozen)

    def classify(self, path) -> str:
        """Content type for ``path``; no sniffing, unknown extensions get the default."""
        ext = os.path.splitext(os.fspath(path))[1].lower()
        return self.types.get(ext, self.default)

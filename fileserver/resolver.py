"""
Map request paths onto the served directory.

Decoding and the escape check are purely lexical: symlinks below the root are
not resolved here and are followed by the filesystem as usual.
"""
import os
import posixpath
import re
from typing import NamedTuple
from urllib.parse import unquote_to_bytes, urlsplit

from fileserver.errors import DecodeError, PathTraversalError

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class Resolved(NamedTuple):
    request_path: str
    filesystem_path: str


def served_root(directory) -> str:
    """Absolute, normalized form of the directory to serve."""
    return os.path.normpath(os.path.abspath(os.fspath(directory)))


def decode_path(raw_path: str) -> str:
    """Percent-decode the path component of a request target.

    ``http.server`` hands over the request line decoded as latin-1, so the
    string is turned back into the bytes the client sent before unquoting.
    """
    path = raw_path.split("?", 1)[0].split("#", 1)[0]
    if path and not path.startswith("/"):
        # absolute-form target, e.g. "http://host/a/b"
        try:
            path = urlsplit(path).path
        except ValueError as exc:
            raise DecodeError(f"malformed request target {raw_path!r}") from exc

    if _BAD_ESCAPE.search(path):
        raise DecodeError(f"invalid percent-escape in {path!r}")
    try:
        raw = path.encode("latin-1")
    except UnicodeEncodeError:
        raw = path.encode("utf-8")
    try:
        decoded = unquote_to_bytes(raw).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"path is not valid UTF-8: {path!r}") from exc

    if "\x00" in decoded:
        raise DecodeError("NUL byte in request path")
    return "/" + decoded.lstrip("/")


def resolve(raw_path: str, root: str) -> Resolved:
    """Resolve ``raw_path`` to a filesystem path that is ``root`` or below it.

    Raises DecodeError for undecodable paths and PathTraversalError when the
    normalized path would leave ``root``.
    """
    decoded = decode_path(raw_path)
    relative = posixpath.normpath(decoded.lstrip("/") or ".")

    candidate = os.path.normpath(os.path.join(root, relative))
    if os.path.commonpath([root, candidate]) != root:
        raise PathTraversalError(f"{decoded!r} escapes the served root")

    request_path = "/" if relative == "." else "/" + relative
    return Resolved(request_path, candidate)

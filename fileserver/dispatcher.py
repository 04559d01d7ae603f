"""
Request dispatch: resolve the path, inspect the filesystem, build the reply.

Every failure is translated into one of the errors in ``fileserver.errors``
here, so nothing below the HTTP handler can crash a request thread or leak
internal details to the client.
"""
import logging
import os
import stat
from typing import NamedTuple

from fileserver.errors import (
    DecodeError,
    FileAccessError,
    FileServerError,
    NotFoundError,
    PathTraversalError,
)
from fileserver.exporter import fileserver_errors_total
from fileserver.listing import DirectoryEntry, render_listing
from fileserver.mimetable import MimeTable
from fileserver.resolver import resolve, served_root

logger = logging.getLogger(__name__)

LISTING_CONTENT_TYPE = "text/html"
ERROR_CONTENT_TYPE = "text/plain; charset=utf-8"

ERROR_BODIES = {
    400: "400 Bad Request",
    403: "403 Forbidden",
    404: "404 Not Found",
    500: "500 Internal Server Error",
}

_ERROR_KINDS = {
    DecodeError: "decode",
    PathTraversalError: "traversal",
    NotFoundError: "not_found",
    FileAccessError: "io",
}


class Reply(NamedTuple):
    status: int
    content_type: str
    body: bytes


def error_reply(status: int) -> Reply:
    return Reply(status, ERROR_CONTENT_TYPE, ERROR_BODIES[status].encode("utf-8"))


class Dispatcher:
    """Answers requests for files below ``root``.

    ``root`` and ``mime_table`` are fixed at construction and only read
    afterwards, so one instance is shared by all request threads.
    """

    def __init__(self, root, mime_table: MimeTable = None):
        self.root = served_root(root)
        self.mime_table = mime_table if mime_table is not None else MimeTable()

    def dispatch(self, raw_path: str) -> Reply:
        try:
            return self._serve(raw_path)
        except FileServerError as exc:
            fileserver_errors_total.labels(kind=_ERROR_KINDS.get(type(exc), "io")).inc()
            if exc.status >= 500:
                logger.error("Failed to serve %r", raw_path, exc_info=exc)
            else:
                logger.debug("Rejected %r: %s", raw_path, exc)
            return error_reply(exc.status)

    def _serve(self, raw_path: str) -> Reply:
        request_path, path = resolve(raw_path, self.root)

        try:
            st = os.stat(path)
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise NotFoundError(request_path) from exc
        except OSError as exc:
            raise FileAccessError(str(exc)) from exc

        # past this point a missing entry was removed after the stat: 500
        try:
            if stat.S_ISDIR(st.st_mode):
                body = render_listing(request_path, self._entries(path))
                body = body.encode("utf-8", "surrogateescape")
                return Reply(200, LISTING_CONTENT_TYPE, body)
            if stat.S_ISREG(st.st_mode):
                with open(path, "rb") as f:
                    body = f.read()
                return Reply(200, self.mime_table.classify(path), body)
        except OSError as exc:
            raise FileAccessError(str(exc)) from exc

        raise FileAccessError(f"{path} is neither a file nor a directory")

    @staticmethod
    def _entries(path: str) -> list:
        entries = []
        with os.scandir(path) as it:
            for entry in it:
                try:
                    is_dir = entry.is_dir()
                except OSError:
                    # symlink loop or unreachable target: still list the name
                    is_dir = False
                entries.append(DirectoryEntry(entry.name, is_dir))
        return entries

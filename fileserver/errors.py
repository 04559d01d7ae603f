"""Request failures, each mapped to the HTTP status it is answered with."""


class FileServerError(Exception):
    status = 500


class DecodeError(FileServerError):
    """Malformed percent-encoding or non UTF-8 bytes in the request path."""

    status = 400


class PathTraversalError(FileServerError):
    """The request path would escape the served root."""

    status = 403


class NotFoundError(FileServerError):
    status = 404


class FileAccessError(FileServerError):
    """Any other filesystem failure while answering a request."""

    status = 500

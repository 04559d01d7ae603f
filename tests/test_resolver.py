import os

import pytest

from fileserver.errors import DecodeError, PathTraversalError
from fileserver.resolver import decode_path, resolve, served_root


@pytest.mark.parametrize("raw", ["", "/", "//", "/.", "/./"])
def test_root_forms_resolve_to_root(root, raw):
    assert resolve(raw, root) == (("/", root))


def test_trailing_separator_is_insignificant(root):
    assert resolve("/sub/", root) == resolve("/sub", root)
    assert resolve("/sub/", root).filesystem_path == os.path.join(root, "sub")


def test_collapses_dots_and_duplicate_separators(root):
    resolved = resolve("/sub/./deeper//../nested.txt", root)
    assert resolved.request_path == "/sub/nested.txt"
    assert resolved.filesystem_path == os.path.join(root, "sub", "nested.txt")


def test_dotdot_that_stays_inside_root_is_allowed(root):
    assert resolve("/sub/../hello.txt", root).filesystem_path == os.path.join(root, "hello.txt")


@pytest.mark.parametrize("raw", [
    "/a",
    "/sub/nested.txt",
    "/sub/deeper/../..",
    "/x/y/z/",
    "/%73ub",
    "/caf%C3%A9.txt",
    "/with%20space",
])
def test_resolved_paths_stay_under_root(root, raw):
    path = resolve(raw, root).filesystem_path
    assert os.path.commonpath([root, path]) == root


@pytest.mark.parametrize("raw", [
    "/..",
    "/../",
    "/../etc/passwd",
    "/sub/../../etc/passwd",
    "/%2e%2e/etc/passwd",
    "/%2e%2e%2fetc%2fpasswd",
    "/%2E%2E%2F%2E%2E%2F",
    "/sub/%2e%2e/%2e%2e/secret",
    "..%2f..%2fsecret",
])
def test_traversal_is_rejected(root, raw):
    with pytest.raises(PathTraversalError):
        resolve(raw, root)


def test_traversal_is_rejected_for_sibling_with_common_prefix(tmp_path):
    (tmp_path / "site").mkdir()
    (tmp_path / "site-private").mkdir()
    with pytest.raises(PathTraversalError):
        resolve("/../site-private/key", served_root(tmp_path / "site"))


@pytest.mark.parametrize("raw", ["/%zz", "/100%", "/a%2", "/%ff", "/%c3%28", "/a%00b"])
def test_malformed_encoding_is_a_decode_error(root, raw):
    with pytest.raises(DecodeError):
        resolve(raw, root)


def test_query_and_fragment_are_ignored():
    assert decode_path("/a/b?c=../../d#frag") == "/a/b"


def test_absolute_form_target_uses_only_the_path():
    assert decode_path("http://example.com:3000/a/b?x=1") == "/a/b"


def test_utf8_percent_escapes_are_decoded():
    assert decode_path("/caf%C3%A9") == "/café"


def test_raw_utf8_request_line_is_decoded():
    # what http.server hands over for a raw UTF-8 request line
    assert decode_path("/café".encode("utf-8").decode("latin-1")) == "/café"


def test_served_root_is_absolute_and_normalized(tmp_path):
    assert served_root(str(tmp_path) + "/./x/..") == os.path.normpath(str(tmp_path))
    assert os.path.isabs(served_root("."))

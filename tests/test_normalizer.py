"""
URL normalizer tests
"""

import pytest

from sitemirror.crawler.errors import MalformedReference, MalformedURL
from sitemirror.crawler.normalizer import is_absolute, normalize


BASE = "http://x.com/a/b.html"


def test_relative_reference_resolves_against_directory():
    assert normalize("c.gif", BASE) == "http://x.com/a/c.gif"


def test_absolute_path_reference_keeps_path():
    assert normalize("/d.gif", BASE) == "http://x.com/d.gif"


def test_absolute_reference_unchanged():
    assert normalize("http://y.com/e.gif", BASE) == "http://y.com/e.gif"


def test_absolute_reference_fragment_stripped():
    assert normalize("http://y.com/e.gif#frag", BASE) == "http://y.com/e.gif"


def test_parent_segments_are_cleaned():
    assert normalize("../up.html", "http://x.com/a/b/c.html") == "http://x.com/a/up.html"
    assert normalize("./same.html", BASE) == "http://x.com/a/same.html"


def test_parent_segments_stop_at_root():
    assert normalize("../../../../x.html", BASE) == "http://x.com/x.html"


def test_directory_reference_keeps_trailing_slash():
    assert normalize("sub/", BASE) == "http://x.com/a/sub/"
    assert normalize("./sub/", BASE) == "http://x.com/a/sub/"
    assert normalize("..", "http://x.com/a/b/c.html") == "http://x.com/a/"


def test_base_without_path():
    assert normalize("c.gif", "http://x.com") == "http://x.com/c.gif"


def test_base_directory_url():
    assert normalize("c.gif", "http://x.com/a/") == "http://x.com/a/c.gif"


def test_scheme_relative_reference_inherits_scheme():
    assert normalize("//cdn.example.com/lib.js", "https://x.com/a/") == "https://cdn.example.com/lib.js"


def test_fragment_only_reference_points_at_base():
    assert normalize("#top", "http://x.com/a/b.html?q=1") == "http://x.com/a/b.html?q=1"


def test_query_only_reference_replaces_query():
    assert normalize("?page=2", "http://x.com/a/b.html?page=1") == "http://x.com/a/b.html?page=2"


def test_relative_reference_keeps_its_query():
    assert normalize("list.html?sort=asc#results", BASE) == "http://x.com/a/list.html?sort=asc"


def test_surrounding_whitespace_is_ignored():
    assert normalize("  c.gif\n", BASE) == "http://x.com/a/c.gif"


def test_opaque_references_pass_through():
    assert normalize("mailto:me@x.com", BASE) == "mailto:me@x.com"
    assert normalize("javascript:void(0)", BASE) == "javascript:void(0)"


@pytest.mark.parametrize("url", [
    "http://x.com/",
    "http://x.com/a/b.html",
    "https://x.com/a/sub/",
    "http://x.com:8080/path?q=1&r=2",
    "http://x.com",
])
def test_normalization_is_idempotent(url):
    assert normalize(url) == url
    assert normalize(url, BASE) == url
    assert normalize(normalize(url)) == normalize(url)


def test_relative_reference_without_base_is_malformed():
    with pytest.raises(MalformedURL):
        normalize("c.gif")


@pytest.mark.parametrize("reference", [
    "http://x.com/%zz",
    "http://[::1",
    "http://x.com:99999/",
    "http://x.com:port/",
    "a\x00b.html",
    "a\x7fb.html",
])
def test_unparseable_references_are_malformed(reference):
    with pytest.raises(MalformedReference):
        normalize(reference, BASE)


def test_malformed_error_carries_url():
    with pytest.raises(MalformedURL) as exc_info:
        normalize("http://x.com/%zz", BASE)
    assert exc_info.value.url == "http://x.com/%zz"


def test_is_absolute():
    assert is_absolute("http://x.com/")
    assert not is_absolute("/x.html")
    assert not is_absolute("x.com/page")
    assert not is_absolute("http://[::1")

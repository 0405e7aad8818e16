import os
from pathlib import Path

import pytest

from sitefront.content.resolver import (
	INDEX,
	candidates,
	extension,
	normalize,
	resolve,
)
from sitefront.content.sources import ContentSource, DiskSource, contains

TRAVERSALS: list[str] = [
	"/../secret.txt",
	"/../../secret.txt",
	"/../../../../etc/passwd",
	"/..%2fsecret.txt",
	"/..%2f..%2fsecret.txt",
	"/%2e%2e/secret.txt",
	"/%2e%2e%2fsecret.txt",
	"/..\\secret.txt",
	"/..%5csecret.txt",
	"/docs/../../secret.txt",
	"/./../secret.txt",
	"//../secret.txt",
	"/../static-evil/evil.html",
	"/..%2fstatic-evil%2fevil.html",
	"/index.html%00.png",
]


def test_normalize():
	assert normalize("") == INDEX
	assert normalize("/") == INDEX
	assert normalize("  /  ") == INDEX
	assert normalize("/about") == "about"
	assert normalize("/about/") == "about"
	assert normalize("/docs/./guide/../index.html") == "docs/index.html"
	assert normalize("//double//slashes") == "double/slashes"
	assert normalize("/../../etc/passwd") == "etc/passwd"
	assert normalize("/..%2f..%2fetc") == "etc"
	assert normalize("\\..\\..\\windows") == "windows"
	assert normalize("/%2e%2e/") == INDEX
	assert normalize("/caf%C3%A9.html") == "café.html"


@pytest.mark.parametrize(
	"path", ["", "/", "/about/", "/a/../b/./c", "/..%2f..", "//x//y/", *TRAVERSALS]
)
def test_normalize_idempotent(path: str):
	once = normalize(path)
	assert normalize(once) == once
	assert normalize("/" + once) == once
	assert ".." not in once.split("/")
	assert not once.startswith("/")


def test_candidates_order():
	assert candidates("docs") == ["docs", "docs.html", "docs/index.html"]
	assert candidates("docs", directoryIndex=False) == ["docs", "docs.html"]
	assert candidates("style.css") == ["style.css"]
	# Only the basename counts when looking for an extension
	assert candidates("v1.2/notes") == [
		"v1.2/notes",
		"v1.2/notes.html",
		"v1.2/notes/index.html",
	]
	assert candidates("archive.tar.gz") == ["archive.tar.gz"]


def test_extension():
	assert extension("logo.PNG") == ".png"
	assert extension("archive.tar.gz") == ".gz"
	assert extension("README") == ""
	assert extension("v1.2/notes") == ""


def test_resolve(source: ContentSource):
	assert resolve(source, "/").path == "index.html"
	assert resolve(source, "").path == "index.html"
	assert resolve(source, "/about").path == "about.html"
	assert resolve(source, "/about.html").path == "about.html"
	assert resolve(source, "/docs").path == "docs/index.html"
	assert resolve(source, "/docs/guide").path == "docs/guide.html"
	assert resolve(source, "/archive.tar.gz").path == "archive.tar.gz"
	assert resolve(source, "/archive.tar") is None
	assert resolve(source, "/missing-page") is None
	logo = resolve(source, "/logo.png")
	assert logo is not None
	assert logo.extension == ".png"
	assert logo.size == 32


def test_resolve_page_before_directory(source: ContentSource):
	# `blog.html` comes before `blog/index.html`
	assert resolve(source, "/blog").path == "blog.html"
	assert resolve(source, "/blog/").path == "blog.html"
	assert resolve(source, "/blog/index.html").path == "blog/index.html"


def test_resolve_without_directory_index(source: ContentSource):
	assert resolve(source, "/docs", directoryIndex=False) is None
	assert resolve(source, "/blog", directoryIndex=False).path == "blog.html"
	assert resolve(source, "/", directoryIndex=False).path == "index.html"


@pytest.mark.parametrize("path", ["/about", "/docs", "/", "/missing", "/logo.png"])
def test_resolve_trailing_slash(source: ContentSource, path: str):
	assert resolve(source, path) == resolve(source, path.rstrip("/") + "/")


def test_resolve_directories_are_not_files(source: ContentSource):
	assert source.stat("docs") is None
	assert source.stat("fonts") is None
	assert resolve(source, "/fonts") is None


@pytest.mark.parametrize("path", TRAVERSALS)
def test_resolve_traversal(source: ContentSource, path: str):
	assert resolve(source, path) is None


def test_contains():
	assert contains("/srv/static", "/srv/static")
	assert contains("/srv/static", "/srv/static/index.html")
	assert contains("/", "/etc")
	assert not contains("/srv/static", "/srv/static-evil/index.html")
	assert not contains("/srv/static", "/srv/stati")
	assert not contains("/srv/static", "/srv")


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="Symlinks not supported")
def test_resolve_symlinks(root: Path):
	(root / "leak.txt").symlink_to(root.parent / "secret.txt")
	(root / "evil").symlink_to(root.parent / "static-evil", target_is_directory=True)
	(root / "alias.html").symlink_to(root / "about.html")
	source = DiskSource(root)
	assert source.stat("leak.txt") is None
	assert resolve(source, "/leak.txt") is None
	assert resolve(source, "/evil/evil.html") is None
	assert resolve(source, "/evil") is None
	# Symlinks within the root are fine
	assert resolve(source, "/alias").path == "alias.html"


# EOF

from pathlib import Path

import pytest

from sitefront.config import SiteConfig
from sitefront.content.sources import ContentSource, DiskSource, EmbeddedSource
from sitefront.site import Site

PNG: bytes = b"\x89PNG\r\n\x1a\n" + bytes(24)

# A small site exercising each resolution rule: pages, directory indexes,
# a page shadowing a directory, assets and extensionless files.
SITE_FILES: dict[str, bytes] = {
	"index.html": b"<!DOCTYPE html><html><body><h1>Home</h1></body></html>",
	"about.html": b"<!DOCTYPE html><html><body><h1>About</h1></body></html>",
	"404.html": b"<!DOCTYPE html><html><body><h1>Lost?</h1></body></html>",
	"style.css": b"body { color: #222; }",
	"app.js": b"console.log('ok');",
	"logo.png": PNG,
	"docs/index.html": b"<!DOCTYPE html><html><body>Docs</body></html>",
	"docs/guide.html": b"<!DOCTYPE html><html><body>Guide</body></html>",
	"blog.html": b"<!DOCTYPE html><html><body>Blog page</body></html>",
	"blog/index.html": b"<!DOCTYPE html><html><body>Blog index</body></html>",
	"archive.tar.gz": b"\x1f\x8b\x08\x00" + bytes(16),
	"fonts/site.woff2": b"wOF2" + bytes(16),
	"README": b"Just some plain text, nothing else.\n",
	"notes": b"<!doctype html><html><body>Notes</body></html>",
	"empty.txt": b"",
}


def writeTree(root: Path, files: dict[str, bytes]) -> Path:
	for key, data in files.items():
		path = root / key
		path.parent.mkdir(parents=True, exist_ok=True)
		path.write_bytes(data)
	return root


@pytest.fixture()
def root(tmp_path: Path) -> Path:
	"""A static directory, with a secret file next to it and a sibling
	directory sharing its name as a prefix."""
	(tmp_path / "secret.txt").write_bytes(b"top secret")
	writeTree(tmp_path / "static-evil", {"evil.html": b"<p>evil</p>"})
	return writeTree(tmp_path / "static", SITE_FILES)


@pytest.fixture(params=["disk", "embedded"])
def source(request: pytest.FixtureRequest, root: Path) -> ContentSource:
	if request.param == "disk":
		return DiskSource(root)
	else:
		return EmbeddedSource(SITE_FILES)


@pytest.fixture()
def site(source: ContentSource) -> Site:
	return Site(source, SiteConfig(logRequests=False))


@pytest.fixture()
def bare(source: ContentSource) -> Site:
	"""A site without a `404.html` page."""
	if isinstance(source, DiskSource):
		(Path(source.root) / "404.html").unlink()
		return Site(source, SiteConfig(logRequests=False))
	else:
		return Site(
			EmbeddedSource({k: v for k, v in SITE_FILES.items() if k != "404.html"}),
			SiteConfig(logRequests=False),
		)


# EOF

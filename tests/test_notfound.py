from sitefront.content.notfound import fallbackPage
from sitefront.utils.htmpl import H, escape, html


def test_escape():
	assert escape("<a href=\"x\">&'</a>") == "&lt;a href=&quot;x&quot;&gt;&amp;&#x27;&lt;/a&gt;"


def test_fallback_page():
	page = fallbackPage("/docs/missing")
	assert page.startswith("<!DOCTYPE html>\n<html lang=\"en\">")
	assert "<title>404 Not Found</title>" in page
	assert "<code>/docs/missing</code>" in page
	assert page.endswith("</html>")


def test_fallback_page_escapes():
	page = fallbackPage("/\"><img src=x onerror=alert(1)>")
	assert "<img" not in page
	assert "&quot;&gt;&lt;img src=x onerror=alert(1)&gt;" in page


def test_htmpl():
	node = H.p("a < b", H.span("x", _="hl"), title='say "hi"')
	assert str(node) == '<p title="say &quot;hi&quot;">a &lt; b<span class="hl">x</span></p>'
	assert "".join(html(H.meta(charset="utf-8"))) == '<meta charset="utf-8">'


# EOF

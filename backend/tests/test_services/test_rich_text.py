"""
Unit tests for the rich-text sanitizer
"""
from tsbio.services.rich_text import sanitize_rich_text_html


def test_keeps_formatting():
    html = "<h2>Cách dùng</h2><p><strong>Pha</strong> 10ml với <em>1 lít</em> nước</p><ul><li>Tưới gốc</li></ul>"

    out = sanitize_rich_text_html(html)

    for tag in ("<h2>", "<strong>Pha</strong>", "<em>1 lít</em>", "<ul><li>Tưới gốc</li></ul>"):
        assert tag in out


def test_strips_scripts_and_handlers():
    out = sanitize_rich_text_html('<p onclick="steal()">Hi</p><script>alert(1)</script><iframe src="x"></iframe>')

    assert "<script" not in out
    assert "onclick" not in out
    assert "<iframe" not in out
    assert "<p>Hi</p>" in out


def test_links_open_in_new_tab():
    out = sanitize_rich_text_html('<a href="https://tsbio.life/cuu-vuon">Cứu vườn</a>')

    assert 'href="https://tsbio.life/cuu-vuon"' in out
    assert 'target="_blank"' in out
    assert 'rel="noopener noreferrer"' in out


def test_javascript_urls_removed():
    out = sanitize_rich_text_html('<a href="javascript:alert(1)">x</a>')

    assert "javascript:" not in out


def test_only_text_align_style():
    out = sanitize_rich_text_html('<p style="text-align: center; color: red">Giữa</p>')

    assert "text-align: center" in out
    assert "color" not in out


def test_bare_urls_not_linkified():
    out = sanitize_rich_text_html("<p>Xem https://tsbio.life</p>")

    assert "<a" not in out


def test_comments_and_empty_input():
    assert sanitize_rich_text_html("<p>a<!-- note --></p>") == "<p>a</p>"
    assert sanitize_rich_text_html(None) == ""
    assert sanitize_rich_text_html("") == ""

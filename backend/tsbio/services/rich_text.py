"""
Rich-text sanitizer for product and category descriptions

The admin editor produces HTML; only a small formatting subset is stored.
"""
import bleach
from bleach.css_sanitizer import CSSSanitizer

ALLOWED_TAGS = [
    "p", "br", "strong", "b", "em", "i", "u", "s", "blockquote",
    "ul", "ol", "li", "h1", "h2", "h3", "h4", "h5", "h6",
    "a", "code", "pre", "hr", "span",
]

ALLOWED_ATTRIBUTES = {
    "a": ["href", "name", "target", "rel"],
    "span": ["style"],
    "p": ["style"],
    "li": ["style"],
}

ALLOWED_PROTOCOLS = ["http", "https", "mailto"]

_css_sanitizer = CSSSanitizer(allowed_css_properties=["text-align"])


def _force_blank_target(attrs, new=False):
    # Bare URLs in text stay text
    if new:
        return None
    if (None, "href") not in attrs:
        return attrs
    attrs[(None, "target")] = "_blank"
    attrs[(None, "rel")] = "noopener noreferrer"
    return attrs


def sanitize_rich_text_html(html) -> str:
    """Allow-listed HTML; links open in a new tab without referrer"""
    if not html:
        return ""
    cleaned = bleach.clean(
        str(html),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        css_sanitizer=_css_sanitizer,
        strip=True,
        strip_comments=True,
    )
    return bleach.linkify(cleaned, callbacks=[_force_blank_target], skip_tags=["pre", "code"], parse_email=False)

"""
Artifact Sanitization

Every transport result passes through sanitize_artifact() before it is
stored or executed. Markup is cleaned with an allow-list policy.
Script and stylesheet bodies are unwrapped, stylesheets lose any embedded
markup, and neither can close the element it is injected into.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup
from bs4.element import PreformattedString

from .diagnostics import get_logger
from .models import FeatureType

logger = get_logger(__name__)

TAG_ATTRIBUTE = "data-feature-id"

ALLOWED_TAGS = frozenset({
    "a", "abbr", "address", "article", "aside", "b", "bdi", "bdo", "blockquote", "br",
    "button", "caption", "cite", "code", "col", "colgroup", "data", "datalist", "dd",
    "del", "details", "dfn", "dialog", "div", "dl", "dt", "em", "fieldset", "figcaption",
    "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hgroup",
    "hr", "i", "img", "input", "ins", "kbd", "label", "legend", "li", "main", "mark",
    "menu", "meter", "nav", "ol", "optgroup", "option", "output", "p", "picture", "pre",
    "progress", "q", "s", "samp", "section", "select", "small", "source", "span",
    "strong", "style", "sub", "summary", "sup", "table", "tbody", "td", "textarea",
    "tfoot", "th", "thead", "time", "tr", "u", "ul", "var", "video", "audio", "track", "wbr",
})

# Removed together with everything inside them
DROP_WITH_CONTENT = frozenset({
    "script", "iframe", "object", "embed", "frame", "frameset", "applet",
    "base", "meta", "link", "noscript", "template", "title",
})

ALLOWED_ATTRIBUTES = frozenset({
    "id", "class", "style", "title", "role", "lang", "dir", "hidden", "tabindex",
    "href", "target", "rel", "download", "src", "alt", "width", "height", "loading",
    "type", "name", "value", "placeholder", "for", "checked", "disabled", "readonly",
    "required", "selected", "multiple", "min", "max", "step", "maxlength", "minlength",
    "pattern", "autocomplete", "rows", "cols", "colspan", "rowspan", "scope", "headers",
    "open", "datetime", "cite", "controls", "autoplay", "loop", "muted", "poster",
    "kind", "srclang", "label", "list", "size", "method", "action", "novalidate",
    "start", "reversed", "span", "media", "sizes",
})

URL_ATTRIBUTES = frozenset({"href", "src", "action", "formaction", "poster", "cite", "xlink:href"})

_UNSAFE_SCHEMES = ("javascript:", "vbscript:")
_UNSAFE_STYLE = ("expression(", "javascript:", "vbscript:", "-moz-binding")

_FENCE_RE = re.compile(r"^\s*```[\w+.-]*[ \t]*\r?\n(.*?)\r?\n?```\s*$", re.DOTALL)
_WRAPPER_RE = re.compile(r"^<(script|style)\b[^>]*>(.*)</\1\s*>$", re.DOTALL | re.IGNORECASE)
_MARKUP_RE = re.compile(r"<\s*[/!?a-zA-Z]")
_CLOSING_TAG_RE = re.compile(r"</(?=(script|style)\b)", re.IGNORECASE)


def strip_code_fences(code: Optional[str]) -> str:
    """Remove a markdown fence wrapped around the whole body."""
    text = code or ""
    m = _FENCE_RE.match(text)
    if m:
        return m.group(1)
    return text


def _is_safe_url(value) -> bool:
    compact = re.sub(r"[\x00-\x20]+", "", str(value)).lower()
    if compact.startswith(_UNSAFE_SCHEMES):
        return False
    if compact.startswith("data:"):
        return compact.startswith("data:image/") and not compact.startswith("data:image/svg")
    return True


def _is_safe_style(value) -> bool:
    compact = re.sub(r"\s+", "", str(value)).lower()
    return not any(token in compact for token in _UNSAFE_STYLE)


def _clean_attributes(tag) -> None:
    for name in list(tag.attrs):
        lname = name.lower()
        value = tag.attrs[name]
        if lname.startswith("on") or lname == TAG_ATTRIBUTE:
            del tag.attrs[name]
        elif not (lname in ALLOWED_ATTRIBUTES or lname.startswith("aria-") or lname.startswith("data-")):
            del tag.attrs[name]
        elif lname in URL_ATTRIBUTES and not _is_safe_url(value):
            del tag.attrs[name]
        elif lname == "style" and not _is_safe_style(value):
            del tag.attrs[name]


def sanitize_markup(html: Optional[str]) -> str:
    """
    Strip scripting vectors from generated markup.

    - script-like elements are removed with their content
    - unknown elements are unwrapped, their children kept
    - inline event handlers, unsafe URLs and unknown attributes are dropped
    - comments, CDATA sections, declarations and processing instructions are removed
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")

    # Comments, CDATA, declarations and processing instructions are written
    # back out verbatim, and browsers end some of them early.
    for node in soup.find_all(string=lambda s: isinstance(s, PreformattedString)):
        node.extract()

    for tag in soup.find_all(list(DROP_WITH_CONTENT)):
        if not getattr(tag, "decomposed", False):
            tag.decompose()

    for tag in soup.find_all(True):
        if tag.name.lower() not in ALLOWED_TAGS:
            tag.unwrap()
        else:
            _clean_attributes(tag)

    return str(soup)


def _unwrap_element(code: str) -> str:
    stripped = code.strip()
    m = _WRAPPER_RE.match(stripped)
    if not m:
        return code
    inner = m.group(2)
    if re.search(rf"</?{m.group(1)}\b", inner, re.IGNORECASE):
        return code
    return inner.strip()


def _strip_markup(css: str) -> str:
    """Reduce a stylesheet that contains tags to its text, dropping script-like elements."""
    if not _MARKUP_RE.search(css):
        return css
    soup = BeautifulSoup(css, "html.parser")
    for tag in soup.find_all(list(DROP_WITH_CONTENT)):
        if not getattr(tag, "decomposed", False):
            tag.decompose()
    for node in soup.find_all(string=lambda s: isinstance(s, PreformattedString)):
        node.extract()
    logger.debug("Removed markup from generated stylesheet")
    return soup.get_text()


def _escape_closing_tags(code: str) -> str:
    # "<\/" reads the same inside JS and CSS strings but cannot end the element
    return _CLOSING_TAG_RE.sub("<\\\\/", code)


def sanitize_artifact(code: Optional[str], feature_type) -> str:
    """
    Safety gate applied to every generated artifact.

    Args:
        code: Raw code returned by the transport
        feature_type: The artifact type the code was requested as

    Returns:
        Code safe to store and execute for that type
    """
    ftype = FeatureType.parse(feature_type)
    body = strip_code_fences(code)
    if ftype is FeatureType.MARKUP:
        cleaned = sanitize_markup(body)
        if cleaned != body:
            logger.debug("Sanitizer changed generated markup")
        return cleaned
    if ftype is FeatureType.STYLESHEET:
        return _escape_closing_tags(_strip_markup(_unwrap_element(body)))
    return _escape_closing_tags(_unwrap_element(body))

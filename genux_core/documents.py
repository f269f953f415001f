#!/usr/bin/env python3
"""
Live documents the execution engine applies features to.

    HtmlDocument - an HTML tree held in memory (BeautifulSoup)
    PageDocument - a live Playwright page

Both tag injected nodes with the data-feature-id attribute and find them
again by querying for it; neither keeps a separate index. They also
provide the structure summary and raw markup used as prompt context.
"""

from typing import Callable, Optional

from bs4 import BeautifulSoup

from .diagnostics import get_logger
from .sanitizer import TAG_ATTRIBUTE

logger = get_logger(__name__)

SCRIPT_ERROR_PREFIX = "Genux Error:"
# Surface-owned nodes are left out of the structure summary
OWN_ID_PREFIX = "genux"

EMPTY_PAGE = "<!DOCTYPE html><html><head></head><body></body></html>"


def _tag_selector(feature_id=None) -> str:
    if feature_id is None:
        return f"[{TAG_ATTRIBUTE}]"
    return f'[{TAG_ATTRIBUTE}="{feature_id}"]'


class Document:
    """Interface shared by HtmlDocument and PageDocument"""

    async def has_target(self, selector: Optional[str]) -> bool:
        raise NotImplementedError

    async def append_to_head(self, tag_name: str, text: str, feature_id: int) -> None:
        raise NotImplementedError

    async def append_markup(self, selector: Optional[str], html: str, feature_id: int) -> bool:
        raise NotImplementedError

    async def remove_tagged(self, feature_id: Optional[int] = None) -> int:
        raise NotImplementedError

    async def count_tagged(self, feature_id: Optional[int] = None) -> int:
        raise NotImplementedError

    async def structure(self, selector: Optional[str] = None) -> str:
        raise NotImplementedError

    async def inner_html(self, selector: Optional[str] = None) -> str:
        raise NotImplementedError

    def on_script_error(self, callback: Callable[[str], None]) -> None:
        """Register a callback for errors caught inside injected scripts."""
        pass


class HtmlDocument(Document):
    """
    In-memory HTML document.

    Scripts are inserted but not run here; nothing executes them until
    the HTML is served to a browser.
    """

    def __init__(self, html: Optional[str] = None):
        self.soup = BeautifulSoup(html or EMPTY_PAGE, "html.parser")
        self._ensure_skeleton()

    def _ensure_skeleton(self):
        root = self.soup.find("html")
        if root is None:
            root = self.soup.new_tag("html")
            for node in list(self.soup.contents):
                root.append(node)
            self.soup.append(root)
        if self.soup.find("head") is None:
            root.insert(0, self.soup.new_tag("head"))
        if self.soup.find("body") is None:
            body = self.soup.new_tag("body")
            for node in list(root.contents):
                if getattr(node, "name", None) != "head":
                    body.append(node)
            root.append(body)

    @classmethod
    def from_file(cls, path) -> "HtmlDocument":
        with open(path, "r", encoding="utf-8") as f:
            return cls(f.read())

    @property
    def head(self):
        return self.soup.find("head")

    @property
    def body(self):
        return self.soup.find("body")

    def _resolve(self, selector: Optional[str]):
        if not selector:
            return self.body
        return self.soup.select_one(selector)

    async def has_target(self, selector: Optional[str]) -> bool:
        return self._resolve(selector) is not None

    async def append_to_head(self, tag_name: str, text: str, feature_id: int) -> None:
        el = self.soup.new_tag(tag_name)
        el.string = text
        el[TAG_ATTRIBUTE] = str(feature_id)
        self.head.append(el)

    async def append_markup(self, selector: Optional[str], html: str, feature_id: int) -> bool:
        target = self._resolve(selector)
        if target is None:
            return False
        container = self.soup.new_tag("div")
        container[TAG_ATTRIBUTE] = str(feature_id)
        fragment = BeautifulSoup(html or "", "html.parser")
        for node in list(fragment.contents):
            container.append(node.extract())
        target.append(container)
        return True

    def tagged(self, feature_id: Optional[int] = None):
        return self.soup.select(_tag_selector(feature_id))

    async def remove_tagged(self, feature_id: Optional[int] = None) -> int:
        nodes = self.tagged(feature_id)
        for node in nodes:
            node.decompose()
        return len(nodes)

    async def count_tagged(self, feature_id: Optional[int] = None) -> int:
        return len(self.tagged(feature_id))

    async def structure(self, selector: Optional[str] = None) -> str:
        out = ["Page DOM Structure:"]
        root = self._resolve(selector)
        if root is None:
            return out[0] + "\n"

        def walk(node, depth):
            node_id = node.get("id") or ""
            if node_id.startswith(OWN_ID_PREFIX):
                return
            entry = f"{'  ' * depth}- <{node.name}"
            if node_id:
                entry += f' id="{node_id}"'
            classes = node.get("class")
            if classes:
                entry += f' class="{" ".join(classes)}"'
            out.append(entry + ">")
            for child in node.find_all(True, recursive=False):
                walk(child, depth + 1)

        walk(root, 0)
        return "\n".join(out) + "\n"

    async def inner_html(self, selector: Optional[str] = None) -> str:
        target = self._resolve(selector)
        return target.decode_contents() if target is not None else ""

    def html(self) -> str:
        return str(self.soup)

    def save(self, path) -> None:
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.html())


class PageDocument(Document):
    """A Playwright page; every operation is one page.evaluate() round trip."""

    def __init__(self, page):
        self.page = page
        self._error_callbacks = []
        self._listening = False

    def on_script_error(self, callback: Callable[[str], None]) -> None:
        self._error_callbacks.append(callback)
        if not self._listening:
            self.page.on("console", self._handle_console)
            self._listening = True

    def _handle_console(self, msg) -> None:
        try:
            if msg.type != "error" or not msg.text.startswith(SCRIPT_ERROR_PREFIX):
                return
            text = msg.text
        except Exception as e:
            logger.debug(f"Unreadable console message: {e}")
            return
        for callback in self._error_callbacks:
            callback(text)

    async def has_target(self, selector: Optional[str]) -> bool:
        return bool(await self.page.evaluate(
            "(sel) => !!(sel ? document.querySelector(sel) : document.body)",
            selector,
        ))

    async def append_to_head(self, tag_name: str, text: str, feature_id: int) -> None:
        await self.page.evaluate(
            """([tag, text, attr, id]) => {
                const el = document.createElement(tag);
                el.textContent = text;
                el.setAttribute(attr, id);
                document.head.appendChild(el);
            }""",
            [tag_name, text, TAG_ATTRIBUTE, str(feature_id)],
        )

    async def append_markup(self, selector: Optional[str], html: str, feature_id: int) -> bool:
        return bool(await self.page.evaluate(
            """([sel, html, attr, id]) => {
                const target = sel ? document.querySelector(sel) : document.body;
                if (!target) return false;
                const div = document.createElement('div');
                div.innerHTML = html;
                div.setAttribute(attr, id);
                target.appendChild(div);
                return true;
            }""",
            [selector, html, TAG_ATTRIBUTE, str(feature_id)],
        ))

    async def remove_tagged(self, feature_id: Optional[int] = None) -> int:
        return int(await self.page.evaluate(
            """(sel) => {
                const nodes = Array.from(document.querySelectorAll(sel));
                nodes.forEach(el => el.remove());
                return nodes.length;
            }""",
            _tag_selector(feature_id),
        ))

    async def count_tagged(self, feature_id: Optional[int] = None) -> int:
        return int(await self.page.evaluate(
            "(sel) => document.querySelectorAll(sel).length",
            _tag_selector(feature_id),
        ))

    async def structure(self, selector: Optional[str] = None) -> str:
        return await self.page.evaluate(
            """([sel, prefix]) => {
                let out = 'Page DOM Structure:\\n';
                const root = sel ? document.querySelector(sel) : document.body;
                if (!root) return out;
                const walk = (node, depth) => {
                    if (node.nodeType !== 1 || (node.id && node.id.startsWith(prefix))) return;
                    let entry = '  '.repeat(depth) + '- <' + node.tagName.toLowerCase();
                    if (node.id) entry += ' id="' + node.id + '"';
                    const cls = node.getAttribute('class');
                    if (cls) entry += ' class="' + cls + '"';
                    out += entry + '>\\n';
                    Array.from(node.children).forEach(child => walk(child, depth + 1));
                };
                walk(root, 0);
                return out;
            }""",
            [selector, OWN_ID_PREFIX],
        )

    async def inner_html(self, selector: Optional[str] = None) -> str:
        return await self.page.evaluate(
            "(sel) => { const t = sel ? document.querySelector(sel) : document.body; return t ? t.innerHTML : ''; }",
            selector,
        )

import pytest
from unittest.mock import AsyncMock, MagicMock

from genux_core.documents import Document, HtmlDocument
from genux_core.execution import ExecutionEngine, wrap_script
from genux_core.models import Feature, FeatureType
from genux_core.sanitizer import sanitize_artifact


def feature(fid, ftype, code):
    return Feature(id=fid, prompt="p", type=ftype, code=code)


def test_wrap_script():
    wrapped = wrap_script("doThing();")
    assert wrapped == "try { (function() { doThing(); })(); } catch (e) { console.error('Genux Error:', e); }"


class TestExecutionEngine:

    @pytest.mark.asyncio
    async def test_script_goes_to_head_wrapped(self, document, surface):
        engine = ExecutionEngine(document, surface=surface)
        assert await engine.apply(feature(1, FeatureType.SCRIPT, "doThing();"))
        node = document.head.find("script", attrs={"data-feature-id": "1"})
        assert node.string == wrap_script("doThing();")

    @pytest.mark.asyncio
    async def test_stylesheet_goes_to_head(self, document, surface):
        engine = ExecutionEngine(document, surface=surface)
        assert await engine.apply(feature(2, FeatureType.STYLESHEET, "h1 { color: red; }"))
        assert document.head.find("style", attrs={"data-feature-id": "2"}).string == "h1 { color: red; }"

    @pytest.mark.asyncio
    async def test_markup_goes_to_target_container(self, document, surface):
        engine = ExecutionEngine(document, target_container="#items", surface=surface)
        assert await engine.apply(feature(3, FeatureType.MARKUP, "<li>Three</li>"))
        assert document.soup.select_one('#items > div[data-feature-id="3"] > li').string == "Three"
        assert await engine.is_applied(3)

    @pytest.mark.asyncio
    async def test_missing_target_reported_not_raised(self, document, surface):
        engine = ExecutionEngine(document, target_container="#missing", surface=surface)
        assert not await engine.apply(feature(4, FeatureType.MARKUP, "<p>x</p>"))
        assert surface.messages("error") == ["Target container not found."]
        assert not await engine.is_applied(4)

    @pytest.mark.asyncio
    async def test_document_failure_reported_not_raised(self, surface):
        doc = MagicMock(spec=Document)
        doc.append_to_head = AsyncMock(side_effect=RuntimeError("page crashed"))
        engine = ExecutionEngine(doc, surface=surface)
        assert not await engine.apply(feature(5, FeatureType.SCRIPT, "x"))
        assert surface.messages("error") == ["Failed to apply feature."]

    @pytest.mark.asyncio
    async def test_apply_all_remove_all(self, document, surface):
        engine = ExecutionEngine(document, target_container="#app", surface=surface)
        applied = await engine.apply_all([
            feature(1, FeatureType.SCRIPT, "a()"),
            feature(2, FeatureType.MARKUP, "<p>b</p>"),
            feature(3, FeatureType.STYLESHEET, "p {}"),
        ])
        assert applied == 3
        assert await engine.remove(2) == 1
        assert await engine.remove(2) == 0
        assert await engine.remove_all() == 2
        assert await document.count_tagged() == 0

    def test_script_errors_reach_surface(self, surface):
        doc = MagicMock(spec=Document)
        engine = ExecutionEngine(doc, surface=surface)
        callback = doc.on_script_error.call_args.args[0]
        callback("Genux Error: TypeError: x is null")
        assert engine.script_errors == ["Genux Error: TypeError: x is null"]
        assert surface.messages("error") == ["Feature script error: TypeError: x is null"]


@pytest.mark.asyncio
async def test_sanitized_stylesheet_stays_inside_style_element(surface):
    doc = HtmlDocument()
    code = sanitize_artifact("h1{color:red}</style><script>alert(1)</script>", "stylesheet")
    assert await ExecutionEngine(doc, surface=surface).apply(feature(1, FeatureType.STYLESHEET, code))
    html = doc.html()
    assert "<script" not in html
    assert '<style data-feature-id="1">h1{color:red}</style>' in html

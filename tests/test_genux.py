import pytest

from genux_core import HtmlDocument, initialize
from genux_core.backends import LocalBackend
from genux_core.genux import Genux
from genux_core.transport import ProxyTransport

from conftest import MemoryAdapter, RecordingSurface


SAVED = [
    {"id": 1, "prompt": "log", "code": "console.log(1)", "type": "script"},
    {"id": 2, "prompt": "banner", "code": "<p>Sale</p>", "type": "markup"},
    {"id": 3, "prompt": "red", "code": "h1 { color: red; }", "type": "stylesheet"},
]


@pytest.mark.asyncio
async def test_initialize_applies_saved_features(document):
    surface = RecordingSurface()
    genux = await initialize(document, {"storageAdapter": MemoryAdapter(SAVED), "targetContainer": "#app"}, surface=surface)
    assert genux.initialized
    assert await document.count_tagged() == 3
    assert document.soup.select_one('#app > div[data-feature-id="2"] p').string == "Sale"

    await genux.initialize()
    assert await document.count_tagged() == 3


@pytest.mark.asyncio
async def test_initialize_mounts_trigger(document):
    surface = RecordingSurface()
    await initialize(document, {"storageAdapter": MemoryAdapter(SAVED)}, surface=surface)
    await surface.trigger()
    assert surface.is_open
    assert surface.rendered == [[1, 2, 3]]


@pytest.mark.asyncio
async def test_initialize_survives_missing_target(document):
    surface = RecordingSurface()
    genux = await initialize(document, {"storageAdapter": MemoryAdapter(SAVED), "targetContainer": "#nope"}, surface=surface)
    assert await document.count_tagged() == 2
    assert len(await genux.get_features()) == 3


def test_defaults_resolve_local_storage_and_proxy(tmp_path):
    genux = Genux(
        HtmlDocument(),
        {"proxyEndpoint": "http://localhost:8000/proxy-api", "storagePath": tmp_path / "ls.json"},
    )
    assert isinstance(genux.context.transport, ProxyTransport)
    assert isinstance(genux.context.store.backend, LocalBackend)


@pytest.mark.asyncio
async def test_features_persist_across_instances(tmp_path):
    options = {"storagePath": tmp_path / "ls.json", "apiAdapter": lambda req: {"code": "p { margin: 0; }"}}
    first = Genux(HtmlDocument(), options, surface=RecordingSurface())
    created = await first.generate_feature("no margins", "css")
    assert created.ok

    doc = HtmlDocument()
    second = await initialize(doc, options, surface=RecordingSurface())
    assert [f.id for f in await second.get_features()] == [created.feature.id]
    assert doc.head.find("style").string == "p { margin: 0; }"

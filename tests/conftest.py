import asyncio

import pytest

from genux_core.documents import HtmlDocument
from genux_core.genux import Genux
from genux_core.surface import Surface
from genux_core.transport import Transport

PAGE = """<!DOCTYPE html>
<html><head><title>Shop</title></head>
<body>
  <div id="app" class="container">
    <h1 class="title">Hello</h1>
    <ul id="items"><li>One</li><li>Two</li></ul>
  </div>
  <div id="genux-modal"><p>Modal</p></div>
</body></html>
"""

ENV_KEYS = [
    "GENUX_API_ENDPOINT",
    "GENUX_API_KEY",
    "GEMINI_API_KEY",
    "GENUX_PROXY_ENDPOINT",
    "GENUX_STORAGE_BACKEND",
    "GENUX_TARGET_CONTAINER",
    "GENUX_DEBOUNCE_DELAY",
    "GENUX_FIRESTORE_PROJECT",
    "GENUX_FIRESTORE_COLLECTION",
    "GENUX_CONFIRM_DESTRUCTIVE",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("GENUX_STORAGE_PATH", str(tmp_path / "local_storage.json"))


class RecordingSurface(Surface):
    """Surface that records everything the coordinator asks of it"""

    def __init__(self, auto_confirm=True):
        super().__init__(auto_confirm=auto_confirm)
        self.notifications = []
        self.confirmations = []
        self.rendered = []
        self.busy_changes = []
        self.prefilled = []

    def notify_nowait(self, message, level="info"):
        self.notifications.append((level, message))

    async def confirm(self, message):
        self.confirmations.append(message)
        return self.auto_confirm

    async def render_features(self, features):
        self.rendered.append([f.id for f in features])

    async def set_busy(self, busy):
        self.busy_changes.append(busy)
        self.busy = busy

    async def prefill(self, prompt, feature_type):
        self.prefilled.append((prompt, feature_type))

    def messages(self, level=None):
        return [m for lvl, m in self.notifications if level is None or lvl == level]


class MemoryAdapter:
    """Storage adapter keeping records in a list"""

    def __init__(self, records=None):
        self.records = list(records or [])
        self.saves = 0

    def get(self):
        return list(self.records)

    def save(self, records):
        self.saves += 1
        self.records = list(records)


class StubTransport(Transport):
    """Returns queued responses in order; exceptions in the queue are raised"""

    name = "stub"

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def generate(self, prompt, feature_type):
        self.calls.append((prompt, feature_type))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return response


class BlockingTransport(Transport):
    """Waits on an event before answering"""

    name = "blocking"

    def __init__(self, code="console.log('ok')"):
        self.code = code
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def generate(self, prompt, feature_type):
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return self.code


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def adapter():
    return MemoryAdapter()


@pytest.fixture
def document():
    return HtmlDocument(PAGE)


@pytest.fixture
def make_genux(document, surface, adapter):
    def factory(transport=None, **options):
        options.setdefault("storageAdapter", adapter)
        return Genux(document, options, surface=surface, transport=transport or StubTransport("console.log(1)"))
    return factory

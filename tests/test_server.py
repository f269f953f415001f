import pytest

import genux_server.routes.proxy as proxy_route
from genux_core.exceptions import ResponseFormatError, TransportStatusError
from genux_core.models import FeatureType
from genux_server.app import app


class FakeTransport:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def generate(self, prompt, feature_type):
        self.calls.append((prompt, feature_type))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def client():
    return app.test_client()


def use_transport(monkeypatch, result):
    fake = FakeTransport(result)
    monkeypatch.setattr(proxy_route, "build_transport", lambda: fake)
    return fake


def test_health_endpoint(client):
    resp = client.get('/health')
    assert resp.status_code == 200
    data = resp.get_json()
    assert data.get('status') == 'healthy'
    assert 'api_endpoint' in data
    assert 'api_key_configured' in data


def test_proxy_returns_code(client, monkeypatch):
    fake = use_transport(monkeypatch, "```css\nbody { margin: 0; }\n```")
    resp = client.post('/proxy-api', json={"prompt": "compiled prompt", "outputType": "stylesheet"})
    assert resp.status_code == 200
    assert resp.get_json() == {"code": "body { margin: 0; }"}
    assert fake.calls == [("compiled prompt", FeatureType.STYLESHEET)]


def test_proxy_defaults_to_script(client, monkeypatch):
    fake = use_transport(monkeypatch, "x()")
    client.post('/proxy-api', json={"prompt": "p"})
    assert fake.calls[0][1] is FeatureType.SCRIPT


@pytest.mark.parametrize("body", [{}, {"prompt": "   "}, {"prompt": 5}])
def test_proxy_requires_prompt(client, monkeypatch, body):
    fake = use_transport(monkeypatch, "x()")
    resp = client.post('/proxy-api', json=body)
    assert resp.status_code == 400
    assert fake.calls == []


def test_proxy_rejects_unknown_type(client, monkeypatch):
    use_transport(monkeypatch, "x()")
    resp = client.post('/proxy-api', json={"prompt": "p", "outputType": "rust"})
    assert resp.status_code == 400


@pytest.mark.parametrize("error", [TransportStatusError(503), ResponseFormatError("Malformed response")])
def test_proxy_upstream_failure(client, monkeypatch, error):
    use_transport(monkeypatch, error)
    resp = client.post('/proxy-api', json={"prompt": "p"})
    assert resp.status_code == 502
    assert "error" in resp.get_json()

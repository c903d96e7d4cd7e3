import threading

import pytest

from azopenai_lib.exceptions import ConfigurationError
from azopenai_lib.utils.endpoints import EndpointResolver, EndpointType, TemplateVars

API_VERSION = "2023-05-15"
BASE = "https://test.openai.azure.com/openai/deployments"


@pytest.fixture
def resolver():
    return EndpointResolver(TemplateVars(resource_name="test", api_version=API_VERSION))


@pytest.mark.parametrize(
    "endpoint_type, deployment_id, want",
    [
        (
            EndpointType.COMPLETIONS,
            "deployment1",
            f"{BASE}/deployment1/completions?api-version={API_VERSION}",
        ),
        (
            EndpointType.EMBEDDINGS,
            "deployment1",
            f"{BASE}/deployment1/embeddings?api-version={API_VERSION}",
        ),
        (
            EndpointType.CHAT,
            "deployment1",
            f"{BASE}/deployment1/chat/completions?api-version={API_VERSION}",
        ),
        (
            EndpointType.COMPLETIONS,
            "deployment2",
            f"{BASE}/deployment2/completions?api-version={API_VERSION}",
        ),
    ],
)
def test_resolve(resolver, endpoint_type, deployment_id, want):
    assert resolver.resolve(endpoint_type, deployment_id) == want


def test_second_resolve_hits_cache(resolver, monkeypatch):
    builds = []
    original = resolver._build

    def counting_build(endpoint_type, deployment_id):
        builds.append((endpoint_type, deployment_id))
        return original(endpoint_type, deployment_id)

    monkeypatch.setattr(resolver, "_build", counting_build)

    first = resolver.resolve(EndpointType.CHAT, "d1")
    other = resolver.resolve(EndpointType.EMBEDDINGS, "d1")
    second = resolver.resolve(EndpointType.CHAT, "d1")

    assert first == second
    assert other != first
    assert builds == [(EndpointType.CHAT, "d1"), (EndpointType.EMBEDDINGS, "d1")]
    assert len(resolver) == 2


def test_concurrent_misses_build_once(resolver, monkeypatch):
    builds = []
    original = resolver._build

    def slow_build(endpoint_type, deployment_id):
        builds.append(deployment_id)
        return original(endpoint_type, deployment_id)

    monkeypatch.setattr(resolver, "_build", slow_build)

    start = threading.Barrier(8)
    results = []

    def worker():
        start.wait()
        results.append(resolver.resolve(EndpointType.COMPLETIONS, "shared"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert builds == ["shared"]
    assert len(set(results)) == 1


def test_endpoint_type_accepts_plain_value(resolver):
    assert resolver.resolve("embeddings", "d").endswith(
        f"/d/embeddings?api-version={API_VERSION}"
    )


@pytest.mark.parametrize("deployment_id", ["", "bad/name", "with space", "q?x", "a#b"])
def test_malformed_deployment_is_rejected(resolver, deployment_id):
    with pytest.raises(ConfigurationError):
        resolver.resolve(EndpointType.CHAT, deployment_id)


def test_malformed_resource_name_is_rejected():
    resolver = EndpointResolver(
        TemplateVars(resource_name="evil.com/x", api_version=API_VERSION)
    )
    with pytest.raises(ConfigurationError):
        resolver.resolve(EndpointType.CHAT, "d")


def test_unknown_endpoint_type_is_rejected(resolver):
    with pytest.raises(ConfigurationError):
        resolver.resolve("images", "d")

import pytest
from fastapi.testclient import TestClient

from Security.endpoint_validation import check_endpoint
from Security.security_config import GatekeeperConfig

from conftest import PUBLIC_URL, build_app


@pytest.mark.parametrize(
    "path",
    ["/graphql", "/graphql/system", "/graphql/system/", "/graphql/system/foo", "/auth/login", "/graphqlfoo"],
)
def test_allowed_paths(path):
    assert check_endpoint(path).allowed


@pytest.mark.parametrize("path", ["/graphql/evil", "/graphql/", "/graphql/systemx", "/graphql/v2/system"])
def test_rejected_paths(path):
    decision = check_endpoint(path)
    assert decision.status_code == 400
    assert decision.body == {"error": "Invalid endpoint."}


def test_middleware_blocks_sub_path():
    client = TestClient(build_app(GatekeeperConfig(public_url=PUBLIC_URL)))
    response = client.post("/graphql/malicious", json={"query": "{ __typename }"})
    assert response.status_code == 400
    assert "Invalid endpoint" in response.json()["error"]


def test_middleware_allows_system():
    client = TestClient(build_app(GatekeeperConfig(public_url=PUBLIC_URL)))
    assert client.post("/graphql/system", json={"query": "{ __typename }"}).status_code == 200
    assert client.post("/graphql/system/foo", json={"query": "{ __typename }"}).status_code == 200


def test_disabled_endpoint_validation_passes_through():
    client = TestClient(build_app(GatekeeperConfig(public_url=PUBLIC_URL, endpoint_validation_enabled=False)))
    response = client.post("/graphql/malicious", json={"query": "{ __typename }"})
    assert response.status_code == 200
    assert response.json() == {"data": {"rest": "malicious"}}


@pytest.mark.parametrize("url", ["/graphql/system?x=1", "/graphql/evil?x=1", "/graphql/?x=1"])
def test_query_string_is_part_of_the_match(url):
    assert check_endpoint(url).status_code == 400


@pytest.mark.parametrize("url", ["/graphql?x=1", "/graphql/system/?x=1", "/auth/login?next=/graphql/evil"])
def test_allowed_urls_with_query(url):
    assert check_endpoint(url).allowed


def test_middleware_matches_query_string():
    client = TestClient(build_app(GatekeeperConfig(public_url=PUBLIC_URL)))
    assert client.post("/graphql/system?x=1", json={"query": "{ __typename }"}).status_code == 400
    assert client.post("/graphql?x=1", json={"query": "{ __typename }"}).status_code == 200


def test_check_endpoint_is_idempotent():
    for url in ("/graphql/evil", "/graphql/system"):
        assert check_endpoint(url) == check_endpoint(url)

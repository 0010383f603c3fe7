import pytest
import requests

from dominance.api.client import DEFAULT_BASE_URL, RateLimiter, SleeperClient, client_from_env


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


def _client(monkeypatch, responses):
    client = SleeperClient(min_interval_ms=1)
    seen = []

    def fake_get(url, timeout):
        seen.append(url)
        return responses.get(url, FakeResponse(None))

    monkeypatch.setattr(client.session, "get", fake_get)
    return client, seen


def test_reads_hit_expected_paths(monkeypatch):
    base = DEFAULT_BASE_URL
    client, seen = _client(
        monkeypatch,
        {
            f"{base}/league/L1": FakeResponse({"league_id": "L1"}),
            f"{base}/league/L1/matchups/3": FakeResponse([{"roster_id": 1}]),
        },
    )
    assert client.get_league("L1") == {"league_id": "L1"}
    assert client.get_matchups("L1", 3) == [{"roster_id": 1}]
    # null bodies become empty lists
    assert client.get_rosters("L1") == []
    assert client.get_users("L1") == []
    assert seen[-2:] == [f"{base}/league/L1/rosters", f"{base}/league/L1/users"]


def test_http_errors_propagate(monkeypatch):
    client, _ = _client(monkeypatch, {f"{DEFAULT_BASE_URL}/league/bad": FakeResponse(None, 404)})
    with pytest.raises(requests.HTTPError):
        client.get_league("bad")


def test_rate_limit_settings():
    assert SleeperClient(rpm_limit=120).rate.min_interval == pytest.approx(0.5)
    assert SleeperClient(rpm_limit=600, min_interval_ms=250).rate.min_interval == pytest.approx(0.25)
    assert RateLimiter().min_interval > 0


def test_client_from_env(monkeypatch):
    monkeypatch.setenv("SLEEPER_BASE_URL", "http://localhost:9999/v1/")
    monkeypatch.setenv("SLEEPER_TIMEOUT_SEC", "3")
    monkeypatch.setenv("SLEEPER_RPM_LIMIT", "not-a-number")
    client = client_from_env()
    assert client.base_url == "http://localhost:9999/v1"
    assert client.timeout == 3.0

"""HTTP client and rate limiter for the Sleeper API.

This module centralizes HTTP concerns:
- Simple monotonically-timed rate limiting (min interval between calls)
- Resilient requests.Session with retries and backoff for transient errors
- The four league reads the dominance report needs (league, rosters, users, matchups)

Week fetches for one season may be issued from a thread pool, so the limiter is
guarded by a lock.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Any, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from dominance.constants import DEFAULT_MIN_INTERVAL_SEC, DEFAULT_TIMEOUT_SEC

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.sleeper.com/v1"


class LeagueDataProvider(Protocol):
    """Read-only league data boundary consumed by the report builder."""

    def get_league(self, league_id: str) -> dict | None: ...
    def get_rosters(self, league_id: str) -> list[dict]: ...
    def get_users(self, league_id: str) -> list[dict]: ...
    def get_matchups(self, league_id: str, week: int) -> list[dict]: ...


class RateLimiter:
    """Wall-clock based rate limiter using a minimum interval between calls.

    Ensures at least ``min_interval_sec`` seconds elapse between consecutive
    ``wait()`` calls, across threads.
    """

    def __init__(self, min_interval_sec: float | None = None) -> None:
        self.min_interval = (
            float(min_interval_sec) if min_interval_sec else DEFAULT_MIN_INTERVAL_SEC
        )
        self._last = 0.0
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            now = time.monotonic()
            if self._last:
                elapsed = now - self._last
                if elapsed < self.min_interval:
                    time.sleep(self.min_interval - elapsed)
            self._last = time.monotonic()


class SleeperClient:
    """Thin wrapper around requests.Session for the Sleeper API.

    - base_url: defaults to https://api.sleeper.com/v1
    - rpm_limit: translated to a minimum interval of 60 / rpm seconds
    - min_interval_ms: explicit minimum interval in milliseconds (wins if larger)
    - timeout: per-request timeout in seconds

    Only GET + JSON is implemented because the report only needs reads.
    """

    def __init__(
        self,
        base_url: str | None = None,
        rpm_limit: float | None = None,
        min_interval_ms: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = float(timeout) if timeout else DEFAULT_TIMEOUT_SEC
        min_interval = None
        if rpm_limit and rpm_limit > 0:
            min_interval = max(min_interval or 0.0, 60.0 / rpm_limit)
        if min_interval_ms and min_interval_ms > 0:
            ms = float(min_interval_ms) / 1000.0
            min_interval = max(min_interval or 0.0, ms)
        self.rate = RateLimiter(min_interval)

        self.session = requests.Session()
        self.session.headers.update({"User-Agent": "league-dominance/1.0"})
        retry = Retry(
            total=5,
            connect=3,
            read=3,
            backoff_factor=0.5,
            status_forcelist=(408, 429, 500, 502, 503, 504),
            allowed_methods=("GET",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def get_json(self, path: str) -> Any:
        """GET ``base_url + path`` and return decoded JSON.

        Raises requests.HTTPError on non-2xx responses (after retries).
        """
        self.rate.wait()
        url = self.base_url + path
        log.debug("GET %s", url)
        r = self.session.get(url, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def get_league(self, league_id: str) -> dict | None:
        return self.get_json(f"/league/{league_id}")

    def get_rosters(self, league_id: str) -> list[dict]:
        return self.get_json(f"/league/{league_id}/rosters") or []

    def get_users(self, league_id: str) -> list[dict]:
        return self.get_json(f"/league/{league_id}/users") or []

    def get_matchups(self, league_id: str, week: int) -> list[dict]:
        return self.get_json(f"/league/{league_id}/matchups/{week}") or []


def _env_float(name: str) -> float | None:
    raw = os.environ.get(name)
    try:
        return float(raw) if raw else None
    except ValueError:
        log.warning("Ignoring non-numeric %s=%r", name, raw)
        return None


def client_from_env() -> SleeperClient:
    return SleeperClient(
        os.environ.get("SLEEPER_BASE_URL", DEFAULT_BASE_URL),
        rpm_limit=_env_float("SLEEPER_RPM_LIMIT"),
        min_interval_ms=_env_float("SLEEPER_MIN_INTERVAL_MS"),
        timeout=_env_float("SLEEPER_TIMEOUT_SEC"),
    )

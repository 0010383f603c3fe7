import os
from pathlib import Path

import pytest
import requests
import yaml

FIXTURES = Path(os.path.dirname(__file__)) / "fixtures"


class FakeSleeper:
    """In-memory LeagueDataProvider backed by a YAML fixture.

    ``fail_weeks`` holds ``(league_id, week)`` pairs whose matchups raise an
    HTTPError; ``fail_leagues`` makes get_league raise for those ids.
    """

    def __init__(self, data: dict):
        self.leagues = data.get("leagues", {})
        self.fail_weeks: set[tuple[str, int]] = set()
        self.fail_leagues: set[str] = set()
        self.calls: list[tuple[str, ...]] = []

    def get_league(self, league_id):
        self.calls.append(("league", league_id))
        if league_id in self.fail_leagues:
            raise requests.HTTPError(f"500 for league {league_id}")
        entry = self.leagues.get(league_id)
        return dict(entry["league"]) if entry else None

    def get_rosters(self, league_id):
        self.calls.append(("rosters", league_id))
        return list(self.leagues.get(league_id, {}).get("rosters", []))

    def get_users(self, league_id):
        self.calls.append(("users", league_id))
        return list(self.leagues.get(league_id, {}).get("users", []))

    def get_matchups(self, league_id, week):
        self.calls.append(("matchups", league_id, str(week)))
        if (league_id, week) in self.fail_weeks:
            raise requests.HTTPError(f"503 for {league_id} week {week}")
        weeks = self.leagues.get(league_id, {}).get("matchups", {}) or {}
        return list(weeks.get(week, []))


def load_fixture(name: str) -> dict:
    with open(FIXTURES / name, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def fake_sleeper():
    return FakeSleeper(load_fixture("two_season_league.yaml"))


@pytest.fixture
def make_provider():
    def _make(data: dict) -> FakeSleeper:
        return FakeSleeper(data)

    return _make

"""Cross-season manager identity.

Roster ids are only meaningful within one season, so every roster is mapped to a
canonical manager key: ``owner:<user_id>`` when the roster has an owner (or a
co-owner), otherwise ``name:<lower-cased fallback name>``. A roster with neither
owner nor usable name still gets ``name:roster:<roster_id>`` so it participates
in the grid.

The registry is request-local: build one per report.
"""

from __future__ import annotations

from dataclasses import dataclass

from dominance.constants import AVATAR_BASE_URL

from .core import _coerce_int


@dataclass(slots=True)
class Manager:
    key: str
    name: str
    avatar_url: str | None = None


@dataclass(frozen=True, slots=True)
class RosterIdentity:
    roster_id: int
    key: str
    name: str
    owner_id: str | None
    placeholder: bool = False


def avatar_url(avatar: str | None) -> str | None:
    if not avatar:
        return None
    if avatar.startswith(("http://", "https://")):
        return avatar
    return f"{AVATAR_BASE_URL}/{avatar}"


def _placeholder_name(roster_id: int) -> str:
    return f"Roster {roster_id}"


def _roster_team_name(roster: dict) -> str | None:
    meta = roster.get("metadata") or {}
    if isinstance(meta, dict):
        return meta.get("team_name") or meta.get("name") or None
    return None


def _chosen_owner(roster: dict, user_by_id: dict[str, dict]) -> str | None:
    owner = roster.get("owner_id")
    if owner:
        return str(owner)
    co = roster.get("co_owners") or []
    if isinstance(co, list):
        for uid in co:
            if uid and str(uid) in user_by_id:
                return str(uid)
    return None


def resolve_roster_identity(roster: dict, user_by_id: dict[str, dict]) -> RosterIdentity:
    rid = _coerce_int(roster.get("roster_id"), -1)
    owner_id = _chosen_owner(roster, user_by_id)
    user = user_by_id.get(owner_id) if owner_id else None
    user = user or {}
    team_name = _roster_team_name(roster)

    if owner_id:
        key = f"owner:{owner_id}"
    else:
        fallback = team_name.strip().lower() if isinstance(team_name, str) else ""
        key = f"name:{fallback}" if fallback else f"name:roster:{rid}"

    name = user.get("display_name") or user.get("username") or team_name
    if not name:
        return RosterIdentity(rid, key, _placeholder_name(rid), owner_id, placeholder=True)
    return RosterIdentity(roster_id=rid, key=key, name=name, owner_id=owner_id)


class ManagerRegistry:
    """Managers seen across one season chain, keyed by canonical key.

    Seasons are registered newest first, so the first real name seen is the
    current one; later (older) sightings only replace a placeholder name.
    Avatars are merge-only: the first non-empty value is kept.
    """

    def __init__(self) -> None:
        self._by_key: dict[str, Manager] = {}
        self._placeholders: set[str] = set()

    def __contains__(self, key: str) -> bool:
        return key in self._by_key

    def __len__(self) -> int:
        return len(self._by_key)

    def get(self, key: str) -> Manager | None:
        return self._by_key.get(key)

    def managers(self) -> list[Manager]:
        return list(self._by_key.values())

    def upsert(self, key: str, name: str, avatar: str | None = None, placeholder: bool = False) -> Manager:
        existing = self._by_key.get(key)
        if existing is None:
            existing = Manager(key=key, name=name, avatar_url=avatar)
            self._by_key[key] = existing
            if placeholder:
                self._placeholders.add(key)
            return existing
        if name and not placeholder and key in self._placeholders:
            existing.name = name
            self._placeholders.discard(key)
        if not existing.avatar_url and avatar:
            existing.avatar_url = avatar
        return existing

    def register_season(self, rosters: list[dict], users: list[dict]) -> dict[int, RosterIdentity]:
        """Map one season's roster ids to canonical identities, upserting managers."""
        user_by_id = {str(u.get("user_id")): u for u in users or [] if u.get("user_id")}
        mapping: dict[int, RosterIdentity] = {}
        for r in rosters or []:
            if r.get("roster_id") is None:
                continue
            ident = resolve_roster_identity(r, user_by_id)
            mapping[ident.roster_id] = ident
            user = user_by_id.get(ident.owner_id or "") or {}
            self.upsert(ident.key, ident.name, avatar_url(user.get("avatar")), placeholder=ident.placeholder)
        return mapping

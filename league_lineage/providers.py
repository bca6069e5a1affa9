"""
Collaborator interfaces consumed by the resolvers, and their Sleeper-backed
implementation.

The resolvers only ever talk to these protocols, so tests (and other
platforms) can hand in plain in-memory objects.
"""

import logging
from typing import Protocol, Dict, Iterable, List, Optional

import httpx

from . import client, config
from .exceptions import UpstreamUnavailable
from .models.lineage import (
    DraftInfo,
    DraftPickEvent,
    PlayerInfo,
    RosterInfo,
    TradedPickRecord,
    TradeRecord,
)
from .models.sleeper import Draft, League, LeagueUser, Pick, Player, Roster, TradedPick, Transaction

logger = logging.getLogger(__name__)


class RosterProvider(Protocol):
    async def get_rosters(self, season: str) -> List[RosterInfo]:
        ...

    async def get_team_names(self, season: str) -> Dict[int, str]:
        """roster_id -> display team name."""
        ...

    async def get_draft_rounds(self, season: str) -> int:
        ...


class DraftProvider(Protocol):
    async def get_season_draft(self, season: str) -> Optional[DraftInfo]:
        ...

    async def get_draft_picks(self, draft_id: str) -> List[DraftPickEvent]:
        ...


class TradedPickProvider(Protocol):
    async def get_traded_picks(self, season: str) -> List[TradedPickRecord]:
        ...


class PlayerDirectory(Protocol):
    async def get_player(self, player_id: str) -> Optional[PlayerInfo]:
        ...


class ManualTradeStore(Protocol):
    async def list_trades(self, year: Optional[str] = None) -> List[TradeRecord]:
        ...


class TradeTransactionProvider(Protocol):
    async def get_seasons(self) -> List[str]:
        ...

    async def get_trade_transactions(self, season: str) -> List[Transaction]:
        ...


def _to_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_draft_order(draft: Draft, roster_ids: Optional[Iterable[int]] = None) -> DraftInfo:
    """Read both interpretations of a Sleeper draft order.

    ``draft_order`` is keyed by user_id in current seasons but by roster_id in
    some older ones. Numeric keys naming a known roster are recorded as
    roster -> slot and slot -> roster; every key is kept in ``order_raw`` for
    the user_id lookup. ``slot_to_roster_id`` is authoritative when present.
    """
    known = set(roster_ids) if roster_ids is not None else None
    roster_to_slot: Dict[int, int] = {}
    slot_to_roster: Dict[int, int] = {}
    order_raw: Dict[str, int] = {}

    for key, value in (draft.draft_order or {}).items():
        slot = _to_int(value)
        if slot is None:
            continue
        order_raw[str(key)] = slot
        key_num = _to_int(key)
        if key_num is not None and (known is None or key_num in known):
            roster_to_slot[key_num] = slot
            slot_to_roster[slot] = key_num

    for slot_key, roster_value in (draft.slot_to_roster_id or {}).items():
        slot = _to_int(slot_key)
        roster_id = _to_int(roster_value)
        if slot is not None and roster_id is not None:
            slot_to_roster[slot] = roster_id

    return DraftInfo(
        draft_id=draft.draft_id,
        season=draft.season,
        roster_to_slot=roster_to_slot,
        slot_to_roster=slot_to_roster,
        order_raw=order_raw,
        rounds=_to_int(draft.settings.get("rounds")),
        teams=_to_int(draft.settings.get("teams")),
        status=draft.status,
    )


def player_display_name(player: Player) -> Optional[str]:
    if player.full_name:
        return player.full_name
    name = f"{player.first_name or ''} {player.last_name or ''}".strip()
    return name or None


class SleeperProviders:
    """Roster, draft, traded-pick and player lookups for one Sleeper league chain."""

    def __init__(self, league_id: Optional[str] = None):
        self.league_id = league_id or config.LEAGUE_ID
        self._leagues_by_season: Optional[Dict[str, League]] = None
        self._players: Optional[Dict[str, Player]] = None

    async def _call(self, source: str, coro):
        try:
            return await coro
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(source, e) from e

    async def leagues_by_season(self) -> Dict[str, League]:
        if self._leagues_by_season is None:
            history_data = await self._call("league history", client.get_league_history(self.league_id))
            self._leagues_by_season = {}
            for item in history_data or []:
                league = League(**item)
                self._leagues_by_season.setdefault(league.season, league)
        return self._leagues_by_season

    async def league_for_season(self, season: str) -> Optional[League]:
        return (await self.leagues_by_season()).get(str(season))

    async def _league_or_current(self, season: str) -> League:
        """League of the season, or the newest league for a season not yet rolled over."""
        leagues = await self.leagues_by_season()
        league = leagues.get(str(season))
        if league is not None:
            return league
        if not leagues:
            raise UpstreamUnavailable("league history")
        return leagues[max(leagues)]

    async def get_rosters(self, season: str) -> List[RosterInfo]:
        league = await self._league_or_current(season)
        rosters_data = await self._call("rosters", client.get_league_rosters(league.league_id))
        rosters = [Roster(**r) for r in rosters_data or []]
        return [
            RosterInfo(roster_id=r.roster_id, owner_id=r.owner_id, player_ids=[p for p in (r.players or []) if p])
            for r in rosters
        ]

    async def get_team_names(self, season: str) -> Dict[int, str]:
        league = await self._league_or_current(season)
        rosters_data = await self._call("rosters", client.get_league_rosters(league.league_id))
        users_data = await self._call("league users", client.get_league_users(league.league_id))
        users = {u.user_id: u for u in (LeagueUser(**item) for item in users_data or [])}

        names: Dict[int, str] = {}
        for roster in (Roster(**r) for r in rosters_data or []):
            name = (roster.metadata or {}).get("team_name")
            user = users.get(roster.owner_id) if roster.owner_id else None
            if not name and user is not None:
                name = (user.metadata or {}).get("team_name") or user.display_name
            names[roster.roster_id] = name or f"Roster {roster.roster_id}"
        return names

    async def get_draft_rounds(self, season: str) -> int:
        league = await self._league_or_current(season)
        rounds = _to_int(league.settings.get("draft_rounds"))
        return max(1, rounds) if rounds else config.DEFAULT_DRAFT_ROUNDS

    async def get_season_draft(self, season: str) -> Optional[DraftInfo]:
        league = await self.league_for_season(season)
        if league is None:
            return None
        drafts_data = await self._call("drafts", client.get_league_drafts(league.league_id))
        summary = next((d for d in drafts_data or [] if str(d.get("season")) == str(season)), None)
        if summary is None:
            return None
        # The league drafts listing omits slot_to_roster_id; load the full draft
        draft_data = await self._call("draft", client.get_draft(summary["draft_id"]))
        rosters = await self.get_rosters(season)
        return parse_draft_order(
            Draft(**{**summary, **(draft_data or {})}),
            roster_ids=[r.roster_id for r in rosters],
        )

    async def get_draft_picks(self, draft_id: str) -> List[DraftPickEvent]:
        picks_data = await self._call("draft picks", client.get_draft_picks(draft_id))
        events = []
        for item in picks_data or []:
            pick = Pick(**item)
            events.append(DraftPickEvent(
                round=pick.round,
                draft_slot=pick.draft_slot,
                pick_no=pick.pick_no,
                roster_id=pick.roster_id,
                player_id=pick.player_id,
            ))
        return events

    async def get_traded_picks(self, season: str) -> List[TradedPickRecord]:
        league = await self._league_or_current(season)
        picks_data = await self._call("traded picks", client.get_league_traded_picks(league.league_id))
        records = []
        for item in picks_data or []:
            pick = TradedPick(**item)
            if pick.season != str(season):
                continue
            records.append(TradedPickRecord(**pick.model_dump()))
        return records

    async def get_player(self, player_id: str) -> Optional[PlayerInfo]:
        if self._players is None:
            players_data = await self._call("players", client.get_all_players())
            self._players = {
                p_id: Player(**{**p_data, "player_id": p_id})
                for p_id, p_data in (players_data or {}).items()
                if isinstance(p_data, dict)
            }
        player = self._players.get(player_id)
        if player is None:
            return None
        return PlayerInfo(
            player_id=player_id,
            name=player_display_name(player),
            position=player.position,
            team=player.team,
        )

    async def get_seasons(self) -> List[str]:
        return sorted(await self.leagues_by_season())

    async def get_trade_transactions(self, season: str) -> List[Transaction]:
        league = await self.league_for_season(season)
        if league is None:
            return []
        transactions_data = await self._call(
            "transactions", client.get_all_league_transactions(league.league_id)
        )
        transactions = []
        for item in transactions_data or []:
            if item.get("type") != "trade":
                continue
            transactions.append(Transaction(**item))
        return transactions

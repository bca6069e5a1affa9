from collections import Counter
from typing import Dict, List, Optional

from league_lineage.exceptions import UpstreamUnavailable
from league_lineage.models.lineage import (
    DraftInfo,
    DraftPickEvent,
    PlayerInfo,
    RosterInfo,
    TradeAsset,
    TradedPickRecord,
    TradeRecord,
    TradeTeam,
)
from league_lineage.models.sleeper import Transaction


class FakeLeague:
    """In-memory stand-in for every Sleeper-backed provider."""

    def __init__(
        self,
        rosters: Optional[List[RosterInfo]] = None,
        team_names: Optional[Dict[int, str]] = None,
        rounds: int = 4,
        drafts: Optional[Dict[str, DraftInfo]] = None,
        picks: Optional[Dict[str, List[DraftPickEvent]]] = None,
        traded_picks: Optional[List[TradedPickRecord]] = None,
        players: Optional[Dict[str, PlayerInfo]] = None,
        transactions: Optional[Dict[str, List[Transaction]]] = None,
        fail: Optional[set] = None,
    ):
        self.rosters = rosters or []
        self.team_names = team_names or {}
        self.rounds = rounds
        self.drafts = drafts or {}
        self.picks = picks or {}
        self.traded_picks = traded_picks or []
        self.players = players or {}
        self.transactions = transactions or {}
        self.fail = set(fail or ())
        self.calls = Counter()

    def _record(self, name: str):
        self.calls[name] += 1
        if name in self.fail:
            raise UpstreamUnavailable(name)

    async def get_rosters(self, season: str) -> List[RosterInfo]:
        self._record("get_rosters")
        return list(self.rosters)

    async def get_team_names(self, season: str) -> Dict[int, str]:
        self._record("get_team_names")
        return dict(self.team_names)

    async def get_draft_rounds(self, season: str) -> int:
        self._record("get_draft_rounds")
        return self.rounds

    async def get_season_draft(self, season: str) -> Optional[DraftInfo]:
        self._record("get_season_draft")
        return self.drafts.get(str(season))

    async def get_draft_picks(self, draft_id: str) -> List[DraftPickEvent]:
        self._record("get_draft_picks")
        return list(self.picks.get(draft_id, []))

    async def get_traded_picks(self, season: str) -> List[TradedPickRecord]:
        self._record("get_traded_picks")
        return [p for p in self.traded_picks if p.season == str(season)]

    async def get_player(self, player_id: str) -> Optional[PlayerInfo]:
        self._record("get_player")
        return self.players.get(player_id)

    async def get_seasons(self) -> List[str]:
        self._record("get_seasons")
        return sorted(self.transactions)

    async def get_trade_transactions(self, season: str) -> List[Transaction]:
        self._record(f"get_trade_transactions:{season}")
        return list(self.transactions.get(str(season), []))


class InMemoryManualTrades:
    def __init__(self, trades: Optional[List[TradeRecord]] = None, fail: bool = False):
        self.trades: Dict[str, TradeRecord] = {t.id: t for t in trades or []}
        self.fail = fail

    async def list_trades(self, year: Optional[str] = None, include_inactive: bool = False) -> List[TradeRecord]:
        if self.fail:
            raise UpstreamUnavailable("manual trade ledger")
        return [
            t for t in self.trades.values()
            if (include_inactive or t.active) and (not year or t.date.startswith(str(year)))
        ]

    async def upsert_trade(self, trade: TradeRecord) -> TradeRecord:
        self.trades[trade.id] = trade
        return trade

    async def deactivate_trade(self, trade_id: str) -> bool:
        trade = self.trades.get(trade_id)
        if trade is None:
            return False
        self.trades[trade_id] = trade.model_copy(update={"active": False})
        return True


def rosters(*roster_ids: int) -> List[RosterInfo]:
    return [RosterInfo(roster_id=rid, owner_id=f"user{rid}") for rid in roster_ids]


def pick_asset(year: str, round, original_owner: str, **kwargs) -> TradeAsset:
    name = kwargs.pop("name", f"{year} Round {round} Pick")
    return TradeAsset(type="pick", name=name, year=year, round=round, original_owner=original_owner, **kwargs)


def player_asset(player_id: Optional[str], name: str, **kwargs) -> TradeAsset:
    return TradeAsset(type="player", name=name, player_id=player_id, **kwargs)


def trade(trade_id: str, date: str, teams, status: str = "completed", **kwargs) -> TradeRecord:
    return TradeRecord(
        id=trade_id,
        date=date,
        status=status,
        teams=[TradeTeam(name=name, assets=assets) for name, assets in teams],
        **kwargs,
    )

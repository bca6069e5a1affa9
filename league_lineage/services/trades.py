import asyncio
import logging
import secrets
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from ..exceptions import InvalidManualTrade
from ..models.lineage import ManualTradeIn, TradeAsset, TradeRecord, TradeTeam
from ..models.sleeper import Transaction
from ..providers import ManualTradeStore, PlayerDirectory, RosterProvider, TradeTransactionProvider
from .became import PickBecameResolver

logger = logging.getLogger(__name__)

VALID_STATUSES = ("completed", "pending", "vetoed")

# Sleeper transaction status -> trade status
_STATUS_MAP = {"complete": "completed", "pending": "pending"}


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def pick_display_name(season: str, round: int) -> str:
    return f"{season} {ordinal(round)} Round Pick"


def _ms_to_date(ms: Optional[int]) -> str:
    if ms:
        moment = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    else:
        moment = datetime.now(timezone.utc)
    return moment.strftime("%Y-%m-%d")


async def convert_sleeper_trade(
    transaction: Transaction,
    season: str,
    team_names: Dict[int, str],
    players: PlayerDirectory,
    became: PickBecameResolver,
) -> TradeRecord:
    """Sleeper trade transaction -> TradeRecord listing what each roster received."""

    def team_name(roster_id: int) -> str:
        return team_names.get(roster_id) or f"Roster {roster_id}"

    teams: List[TradeTeam] = []
    for roster_id in transaction.roster_ids:
        assets: List[TradeAsset] = []

        # Players received by this roster
        for player_id, receiving_roster_id in (transaction.adds or {}).items():
            if receiving_roster_id != roster_id:
                continue
            try:
                player = await players.get_player(player_id)
            except Exception as e:
                logger.warning("Player lookup for %s failed: %r", player_id, e)
                player = None
            assets.append(TradeAsset(
                type="player",
                name=(player.name if player else None) or f"Player {player_id}",
                position=player.position if player else None,
                team=(player.team if player else None) or "FA",
                player_id=player_id,
            ))

        # Picks received by this roster
        for pick in transaction.draft_picks or []:
            if pick.owner_id != roster_id or pick.previous_owner_id == roster_id:
                continue
            info = await became.resolve_became(pick.season, pick.round, pick.roster_id)
            draft_slot = info.draft_slot if info else await became.resolve_slot(pick.season, pick.roster_id)
            assets.append(TradeAsset(
                type="pick",
                name=pick_display_name(pick.season, pick.round),
                year=pick.season,
                round=pick.round,
                draft_slot=draft_slot,
                pick_in_round=info.pick_in_round if info else None,
                original_owner=team_name(pick.roster_id),
                became=info.name if info else None,
                became_position=info.position if info else None,
                became_team=info.team if info else None,
                became_player_id=info.player_id if info else None,
            ))

        # FAAB received by this roster
        for budget in transaction.waiver_budget or []:
            if budget.receiver != roster_id:
                continue
            assets.append(TradeAsset(type="faab", name=f"${budget.amount} FAAB", amount=budget.amount))

        teams.append(TradeTeam(name=team_name(roster_id), assets=assets))

    created = transaction.created or transaction.status_updated
    return TradeRecord(
        id=transaction.transaction_id,
        date=_ms_to_date(created),
        status=_STATUS_MAP.get(transaction.status, "vetoed"),
        teams=teams,
        season=str(season),
        week=transaction.leg if transaction.leg and transaction.leg > 0 else None,
        created=created,
    )


def merge_manual_trades(platform_trades: Iterable[TradeRecord], manual_trades: Iterable[TradeRecord]) -> List[TradeRecord]:
    """Manual trades replace the platform trade they override, or are added."""
    merged: Dict[str, TradeRecord] = {t.id: t for t in platform_trades}
    for trade in manual_trades:
        if not trade.active:
            continue
        merged[trade.override_of or trade.id] = trade
    return list(merged.values())


def validate_manual_trade(payload: ManualTradeIn, now: Optional[datetime] = None) -> TradeRecord:
    if not payload.date:
        raise InvalidManualTrade("Missing date")
    try:
        datetime.strptime(payload.date, "%Y-%m-%d")
    except ValueError:
        raise InvalidManualTrade(f"Invalid date {payload.date!r}, expected YYYY-MM-DD")
    if payload.status not in VALID_STATUSES:
        raise InvalidManualTrade(f"Invalid status {payload.status!r}")
    if not payload.teams:
        raise InvalidManualTrade("At least one team required")
    for team in payload.teams:
        if not team.name.strip():
            raise InvalidManualTrade("Every team needs a name")

    now = now or datetime.now(timezone.utc)
    trade_id = payload.id or f"manual-{int(now.timestamp() * 1000)}-{secrets.token_hex(3)}"
    return TradeRecord(
        id=trade_id,
        date=payload.date,
        status=payload.status,
        teams=payload.teams,
        notes=payload.notes,
        override_of=payload.override_of,
    )


class TradeService:
    """All trades of the league chain, platform trades merged with the manual ledger."""

    def __init__(
        self,
        transactions: TradeTransactionProvider,
        rosters: RosterProvider,
        players: PlayerDirectory,
        became: PickBecameResolver,
        manual_trades: ManualTradeStore,
    ):
        self.transactions = transactions
        self.rosters = rosters
        self.players = players
        self.became = became
        self.manual_trades = manual_trades

    async def fetch_season_trades(self, season: str) -> List[TradeRecord]:
        """Converted on every call so statuses and drafted picks stay current."""
        transactions, team_names = await asyncio.gather(
            self.transactions.get_trade_transactions(season),
            self.rosters.get_team_names(season),
        )
        return [
            await convert_sleeper_trade(transaction, season, team_names, self.players, self.became)
            for transaction in transactions
        ]

    async def fetch_all_trades(self) -> List[TradeRecord]:
        try:
            seasons = await self.transactions.get_seasons()
        except Exception as e:
            logger.warning("League seasons unavailable: %r", e)
            seasons = []

        results = await asyncio.gather(
            *(self.fetch_season_trades(season) for season in seasons),
            self.manual_trades.list_trades(),
            return_exceptions=True,
        )
        platform_trades: List[TradeRecord] = []
        for season, result in zip(seasons, results[:-1]):
            if isinstance(result, Exception):
                logger.warning("Trades for %s unavailable: %r", season, result)
                continue
            platform_trades.extend(result)

        manual = results[-1]
        if isinstance(manual, Exception):
            logger.warning("Manual trades unavailable: %r", manual)
            manual = []
        return merge_manual_trades(platform_trades, manual)

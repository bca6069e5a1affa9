import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .. import config
from ..models.lineage import (
    DraftOwnership,
    DraftPickAsset,
    RosterInfo,
    SlotOwnership,
    TradedPickRecord,
    TradeRecord,
    TransferEvent,
)
from ..models.sleeper import Transaction
from ..providers import ManualTradeStore, RosterProvider, TradedPickProvider, TradeTransactionProvider

logger = logging.getLogger(__name__)

SlotKey = Tuple[int, int]  # (original_roster_id, round)

_ROSTER_FALLBACK_NAME = re.compile(r"^roster (\d+)$")


def normalize_team_name(name: Optional[str]) -> str:
    return re.sub(r"[^a-z0-9]+", " ", (name or "").lower()).strip()


def trade_timestamp(trade: TradeRecord) -> int:
    """Unix ms used to order trades; falls back to midnight UTC of the trade date."""
    if trade.created:
        return int(trade.created)
    try:
        day = datetime.strptime(trade.date[:10], "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return 0
    return int(day.timestamp() * 1000)


def build_name_index(team_names: Dict[int, str]) -> Dict[str, int]:
    return {normalize_team_name(name): roster_id for roster_id, name in team_names.items()}


def resolve_roster_id(name: Optional[str], name_index: Dict[str, int], roster_ids: Iterable[int]) -> Optional[int]:
    """Map a team name from the manual ledger to a roster id."""
    key = normalize_team_name(name)
    if not key:
        return None
    if key in name_index:
        return name_index[key]
    # Unnamed rosters are displayed as "Roster <id>"
    match = _ROSTER_FALLBACK_NAME.match(key)
    if match and int(match.group(1)) in set(roster_ids):
        return int(match.group(1))
    return None


def _as_round(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def transaction_timestamp(transaction: Transaction) -> int:
    return int(transaction.status_updated or transaction.created or 0)


def platform_transfer_events(
    season: str,
    transactions: Iterable[Transaction],
    team_names: Dict[int, str],
    overridden: Iterable[str] = (),
) -> Dict[SlotKey, List[TransferEvent]]:
    """Pick movements of completed platform trades, oldest first, keyed by slot."""
    season = str(season)
    skip = set(overridden)
    events: Dict[SlotKey, List[TransferEvent]] = {}
    completed = [t for t in transactions if t.status == "complete" and t.transaction_id not in skip]
    for transaction in sorted(completed, key=transaction_timestamp):
        timestamp = transaction_timestamp(transaction)
        for pick in transaction.draft_picks or []:
            if str(pick.season) != season:
                continue
            from_roster_id, to_roster_id = pick.previous_owner_id, pick.owner_id
            if from_roster_id is None or to_roster_id is None or from_roster_id == to_roster_id:
                continue
            events.setdefault((pick.roster_id, pick.round), []).append(TransferEvent(
                trade_id=str(transaction.transaction_id),
                timestamp=timestamp,
                from_roster_id=from_roster_id,
                to_roster_id=to_roster_id,
                from_team=team_names.get(from_roster_id) or f"Roster {from_roster_id}",
                to_team=team_names.get(to_roster_id) or f"Roster {to_roster_id}",
            ))
    return events


def resolve_ownership(
    season: str,
    rosters: List[RosterInfo],
    platform_pick_data: List[TradedPickRecord],
    manual_trades: List[TradeRecord],
    rounds: Optional[int] = None,
    team_names: Optional[Dict[int, str]] = None,
    platform_transactions: Optional[Iterable[Transaction]] = None,
) -> Dict[SlotKey, SlotOwnership]:
    """
    Current owner of every (original roster, round) pick of a season.

    The identity ownership is overwritten by the platform snapshot. The
    snapshot carries no history, so the pick movements of completed platform
    trades are attached as history without touching the owner. Trades
    overridden by an active manual trade contribute nothing. Manual trades are
    then replayed oldest first, each pick movement appending a TransferEvent
    and moving the pick, so manual trades win over the platform on conflict.
    Bad records are skipped, never raised.
    """
    season = str(season)
    rounds = rounds or config.DEFAULT_DRAFT_ROUNDS
    roster_ids = [r.roster_id for r in rosters]
    team_names = {
        roster_id: (team_names or {}).get(roster_id) or f"Roster {roster_id}"
        for roster_id in roster_ids
    }
    name_index = build_name_index(team_names)

    owners: Dict[SlotKey, int] = {}
    history: Dict[SlotKey, List[TransferEvent]] = {}

    # 1. Identity: every roster holds its own picks
    for roster_id in roster_ids:
        for rd in range(1, rounds + 1):
            owners[(roster_id, rd)] = roster_id
            history[(roster_id, rd)] = []

    # 2. Platform snapshot
    for record in platform_pick_data:
        if str(record.season) != season:
            continue
        key = (record.roster_id, record.round)
        if key not in owners:
            logger.debug("Platform pick %s-%s outside seeded slots, skipping", *key)
            continue
        owners[key] = record.owner_id

    # 3. Platform trade history, owners untouched
    overridden = [t.override_of for t in manual_trades if t.active and t.override_of]
    events = platform_transfer_events(season, platform_transactions or [], team_names, overridden)
    for key, slot_events in events.items():
        if key not in owners:
            logger.debug("Platform trade moved pick %s-%s outside seeded slots, skipping", *key)
            continue
        history[key].extend(slot_events)

    # 4. Manual ledger, oldest first
    completed = [t for t in manual_trades if t.status == "completed" and t.active]
    for trade in sorted(completed, key=trade_timestamp):
        timestamp = trade_timestamp(trade)
        for team in trade.teams:
            to_roster_id = resolve_roster_id(team.name, name_index, roster_ids)
            for asset in team.assets:
                if asset.type != "pick" or str(asset.year) != season:
                    continue
                rd = _as_round(asset.round)
                origin_roster_id = resolve_roster_id(asset.original_owner, name_index, roster_ids)
                if to_roster_id is None or origin_roster_id is None or rd is None:
                    logger.debug(
                        "Trade %s: cannot resolve pick %r (team=%r, original owner=%r), skipping",
                        trade.id, asset.name, team.name, asset.original_owner,
                    )
                    continue
                key = (origin_roster_id, rd)
                if key not in owners:
                    logger.debug("Trade %s: round %s outside 1..%s, skipping", trade.id, rd, rounds)
                    continue
                from_roster_id = owners[key]
                if from_roster_id == to_roster_id:
                    continue
                owners[key] = to_roster_id
                history[key].append(TransferEvent(
                    trade_id=trade.id,
                    timestamp=timestamp,
                    from_roster_id=from_roster_id,
                    to_roster_id=to_roster_id,
                    from_team=team_names.get(from_roster_id, f"Roster {from_roster_id}"),
                    to_team=team_names.get(to_roster_id, f"Roster {to_roster_id}"),
                ))

    return {
        key: SlotOwnership(
            original_roster_id=key[0],
            round=key[1],
            owner_roster_id=owner,
            history=history[key],
        )
        for key, owner in owners.items()
    }


def picks_owned_by(ownership: Dict[SlotKey, SlotOwnership], roster_id: int, season: str) -> List[DraftPickAsset]:
    """Picks a roster currently holds, own and acquired, by round then original owner."""
    held = [slot for slot in ownership.values() if slot.owner_roster_id == roster_id]
    held.sort(key=lambda s: (s.round, s.original_roster_id))
    return [
        DraftPickAsset(
            season=str(season),
            round=slot.round,
            original_owner=slot.original_roster_id,
            current_owner=slot.owner_roster_id,
        )
        for slot in held
    ]


def _settle(result, default, source: str):
    if isinstance(result, Exception):
        logger.warning("%s unavailable, continuing without it: %r", source, result)
        return default
    return result


class OwnershipService:
    """Fetches the inputs of resolve_ownership concurrently and degrades on failure."""

    def __init__(
        self,
        rosters: RosterProvider,
        traded_picks: TradedPickProvider,
        manual_trades: ManualTradeStore,
        transactions: Optional[TradeTransactionProvider] = None,
    ):
        self.rosters = rosters
        self.traded_picks = traded_picks
        self.manual_trades = manual_trades
        self.transactions = transactions

    async def _trade_transactions(self) -> List[Transaction]:
        """Trades of every season; picks of a future season move in earlier ones."""
        if self.transactions is None:
            return []
        seasons = await self.transactions.get_seasons()
        results = await asyncio.gather(
            *(self.transactions.get_trade_transactions(s) for s in seasons),
            return_exceptions=True,
        )
        transactions: List[Transaction] = []
        for s, result in zip(seasons, results):
            transactions.extend(_settle(result, [], f"trades for {s}"))
        return transactions

    async def get_ownership_map(self, season: str) -> Tuple[Dict[SlotKey, SlotOwnership], Dict[int, str], int, int]:
        season = str(season)
        results = await asyncio.gather(
            self.rosters.get_rosters(season),
            self.rosters.get_team_names(season),
            self.rosters.get_draft_rounds(season),
            self.traded_picks.get_traded_picks(season),
            self.manual_trades.list_trades(),
            self._trade_transactions(),
            return_exceptions=True,
        )
        rosters = _settle(results[0], [], "rosters")
        team_names = _settle(results[1], {}, "team names")
        rounds = _settle(results[2], config.DEFAULT_DRAFT_ROUNDS, "draft rounds")
        platform = _settle(results[3], [], "traded picks")
        manual = _settle(results[4], [], "manual trades")
        transactions = _settle(results[5], [], "platform trades")

        ownership = resolve_ownership(
            season, rosters, platform, manual,
            rounds=rounds, team_names=team_names, platform_transactions=transactions,
        )
        names = {r.roster_id: team_names.get(r.roster_id) or f"Roster {r.roster_id}" for r in rosters}
        return ownership, names, rounds, len(rosters)

    async def get_ownership(self, season: str) -> DraftOwnership:
        ownership, names, rounds, roster_count = await self.get_ownership_map(season)
        slots = sorted(ownership.values(), key=lambda s: (s.round, s.original_roster_id))
        return DraftOwnership(
            season=str(season),
            rounds=rounds,
            roster_count=roster_count,
            roster_id_to_team=names,
            slots=slots,
        )

    async def get_team_picks(self, season: str, roster_id: int) -> List[DraftPickAsset]:
        ownership, _, _, _ = await self.get_ownership_map(season)
        return picks_owned_by(ownership, roster_id, season)

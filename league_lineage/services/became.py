import asyncio
import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

from ..models.lineage import BecameInfo, DraftContext, DraftInfo, DraftPickEvent
from ..providers import DraftProvider, PlayerDirectory, RosterProvider

logger = logging.getLogger(__name__)

# (context, original roster id) -> draft slot or None
SlotStrategy = Callable[[DraftContext, int], Optional[int]]


def slot_from_roster_order(ctx: DraftContext, roster_id: int) -> Optional[int]:
    return ctx.roster_to_slot.get(roster_id)


def slot_from_slot_order(ctx: DraftContext, roster_id: int) -> Optional[int]:
    for slot, slot_roster_id in sorted(ctx.slot_to_roster.items()):
        if slot_roster_id == roster_id:
            return slot
    return None


def slot_from_owner_order(ctx: DraftContext, roster_id: int) -> Optional[int]:
    """Draft order keyed by the manager's user_id."""
    owner_id = ctx.owner_id_by_roster_id.get(roster_id)
    if not owner_id:
        return None
    return ctx.order_raw.get(str(owner_id))


def slot_from_first_round_pick(ctx: DraftContext, roster_id: int) -> Optional[int]:
    for pick in ctx.picks:
        if pick.round == 1 and pick.roster_id == roster_id and pick.draft_slot:
            return pick.draft_slot
    return None


SLOT_STRATEGIES: Tuple[SlotStrategy, ...] = (
    slot_from_roster_order,
    slot_from_slot_order,
    slot_from_owner_order,
    slot_from_first_round_pick,
)


def resolve_draft_slot(
    ctx: DraftContext,
    roster_id: int,
    strategies: Sequence[SlotStrategy] = SLOT_STRATEGIES,
) -> Optional[int]:
    """First strategy to produce a slot wins. Slots are 1-based, so 0 is no answer."""
    for strategy in strategies:
        slot = strategy(ctx, roster_id)
        if slot:
            return slot
    return None


def find_pick(ctx: DraftContext, round: int, slot: int) -> Optional[DraftPickEvent]:
    return next((p for p in ctx.picks if p.round == round and p.draft_slot == slot), None)


def compute_pick_in_round(pick: DraftPickEvent, roster_count: int, slot: int) -> int:
    """
    Position of the pick inside its round, from the overall pick number.

    The draft slot is not the same thing: in a snake draft slot 4 picks 4th in
    odd rounds and (N - 3)th in even rounds, so the slot is only used when the
    overall pick number is unknown.
    """
    if pick.pick_no and roster_count > 0:
        return ((pick.pick_no - 1) % roster_count) + 1
    return slot


def draft_is_complete(draft: DraftInfo, picks: Sequence[DraftPickEvent]) -> bool:
    """Finished drafts never change; anything earlier still gains picks."""
    if draft.status == "complete":
        return True
    if not draft.rounds or not draft.teams:
        return False
    made = sum(1 for pick in picks if pick.player_id)
    return made >= draft.rounds * draft.teams


class DraftContextCache:
    """Draft contexts per (league, season) of completed drafts. Entries are never invalidated."""

    def __init__(self):
        self._entries: Dict[Tuple[str, str], DraftContext] = {}

    def get(self, league_id: str, season: str) -> Optional[DraftContext]:
        return self._entries.get((league_id, str(season)))

    def set(self, league_id: str, season: str, ctx: DraftContext) -> None:
        self._entries[(league_id, str(season))] = ctx

    def __contains__(self, key) -> bool:
        league_id, season = key
        return (league_id, str(season)) in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class PickBecameResolver:
    """Resolves which player a (season, round, original roster) pick became."""

    def __init__(
        self,
        drafts: DraftProvider,
        rosters: RosterProvider,
        players: PlayerDirectory,
        cache: Optional[DraftContextCache] = None,
        league_id: str = "default",
        strategies: Sequence[SlotStrategy] = SLOT_STRATEGIES,
    ):
        self.drafts = drafts
        self.rosters = rosters
        self.players = players
        self.cache = cache if cache is not None else DraftContextCache()
        self.league_id = league_id
        self.strategies = tuple(strategies)

    async def get_draft_context(self, season: str) -> Optional[DraftContext]:
        season = str(season)
        cached = self.cache.get(self.league_id, season)
        if cached is not None:
            return cached

        try:
            draft = await self.drafts.get_season_draft(season)
            if draft is None:
                return None
            picks, rosters = await asyncio.gather(
                self.drafts.get_draft_picks(draft.draft_id),
                self.rosters.get_rosters(season),
            )
        except Exception as e:
            logger.warning("Failed to build draft context for %s season %s: %r", self.league_id, season, e)
            return None

        ctx = DraftContext(
            draft_id=draft.draft_id,
            roster_to_slot=draft.roster_to_slot,
            slot_to_roster=draft.slot_to_roster,
            order_raw=draft.order_raw,
            picks=picks,
            owner_id_by_roster_id={r.roster_id: r.owner_id for r in rosters if r.owner_id},
            roster_count=len(rosters) or (draft.teams or 0),
        )
        if draft_is_complete(draft, picks):
            self.cache.set(self.league_id, season, ctx)
        return ctx

    async def resolve_slot(self, season: str, original_roster_id: int) -> Optional[int]:
        """Draft slot of a roster, known as soon as the season's draft order is set."""
        ctx = await self.get_draft_context(season)
        if ctx is None:
            return None
        return resolve_draft_slot(ctx, original_roster_id, self.strategies)

    async def resolve_became(self, season: str, round: int, original_roster_id: int) -> Optional[BecameInfo]:
        ctx = await self.get_draft_context(season)
        if ctx is None:
            return None

        slot = resolve_draft_slot(ctx, original_roster_id, self.strategies)
        if slot is None:
            logger.debug("No draft slot for roster %s in %s", original_roster_id, season)
            return None

        pick = find_pick(ctx, round, slot)
        if pick is None or not pick.player_id:
            return None

        info = BecameInfo(
            player_id=pick.player_id,
            draft_slot=slot,
            pick_in_round=compute_pick_in_round(pick, ctx.roster_count, slot),
            overall_pick=pick.pick_no,
        )
        try:
            player = await self.players.get_player(pick.player_id)
        except Exception as e:
            logger.warning("Player lookup for %s failed: %r", pick.player_id, e)
            player = None
        if player is not None:
            info.name = player.name
            info.position = player.position
            info.team = player.team
        return info

from typing import Annotated, List, Dict, Optional, Union, Literal
from pydantic import BaseModel, ConfigDict, Field


class RosterInfo(BaseModel):
    roster_id: int
    owner_id: Optional[str] = None  # Sleeper user_id of the manager
    player_ids: List[str] = []


class PlayerInfo(BaseModel):
    player_id: str
    name: Optional[str] = None
    position: Optional[str] = None
    team: Optional[str] = None


class TradedPickRecord(BaseModel):
    """Platform snapshot of a pick that changed hands."""
    season: str
    round: int
    roster_id: int  # Original owner
    owner_id: int   # Current owner
    previous_owner_id: Optional[int] = None


class DraftInfo(BaseModel):
    draft_id: str
    season: str
    roster_to_slot: Dict[int, int] = {}
    slot_to_roster: Dict[int, int] = {}
    # Untouched draft_order, which may be keyed by owner user_id
    order_raw: Dict[str, int] = {}
    rounds: Optional[int] = None
    teams: Optional[int] = None
    status: Optional[str] = None  # pre_draft, drafting, complete


class DraftPickEvent(BaseModel):
    round: int
    draft_slot: Optional[int] = None
    pick_no: Optional[int] = None  # Overall pick number, 1-based
    roster_id: Optional[int] = None
    player_id: Optional[str] = None


class DraftContext(BaseModel):
    """Everything needed to resolve picks for one league season."""
    draft_id: str
    roster_to_slot: Dict[int, int]
    slot_to_roster: Dict[int, int]
    order_raw: Dict[str, int]
    picks: List[DraftPickEvent]
    owner_id_by_roster_id: Dict[int, str]
    roster_count: int


class BecameInfo(BaseModel):
    """The player a draft pick turned into."""
    player_id: str
    name: Optional[str] = None
    position: Optional[str] = None
    team: Optional[str] = None
    draft_slot: int
    pick_in_round: int
    overall_pick: Optional[int] = None


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------


class TransferEvent(BaseModel):
    trade_id: str
    timestamp: int  # Unix timestamp in ms
    from_roster_id: int
    to_roster_id: int
    from_team: str
    to_team: str


class SlotOwnership(BaseModel):
    original_roster_id: int
    round: int
    owner_roster_id: int
    history: List[TransferEvent] = []


class DraftOwnership(BaseModel):
    season: str
    rounds: int
    roster_count: int
    roster_id_to_team: Dict[int, str]
    slots: List[SlotOwnership]


class DraftPickAsset(BaseModel):
    season: str
    round: int
    original_owner: int
    current_owner: int
    became: Optional[BecameInfo] = None


# ---------------------------------------------------------------------------
# Trades
# ---------------------------------------------------------------------------


class TradeAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["player", "pick", "faab", "cash"]
    name: str
    position: Optional[str] = None
    team: Optional[str] = None
    player_id: Optional[str] = None
    # Pick identity
    year: Optional[str] = None
    round: Optional[int] = None
    draft_slot: Optional[int] = None  # Original draft slot (1..N, same in every round)
    pick_in_round: Optional[int] = None
    original_owner: Optional[str] = None  # Team name of the pick's original owner
    # Pick lineage
    became: Optional[str] = None
    became_position: Optional[str] = None
    became_team: Optional[str] = None
    became_player_id: Optional[str] = None
    # FAAB / cash
    amount: Optional[int] = None


class TradeTeam(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    assets: List[TradeAsset] = []  # Assets RECEIVED by this team


class TradeRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    date: str  # YYYY-MM-DD
    status: Literal["completed", "pending", "vetoed"]
    teams: List[TradeTeam]
    notes: Optional[str] = None
    season: Optional[str] = None
    week: Optional[int] = None
    created: Optional[int] = None  # Unix timestamp in ms
    override_of: Optional[str] = None  # Platform transaction_id this manual trade replaces
    active: bool = True


class ManualTradeIn(BaseModel):
    """Manual trade payload as submitted to the ledger."""
    id: Optional[str] = None
    date: Optional[str] = None
    status: Optional[str] = None
    teams: List[TradeTeam] = []
    notes: Optional[str] = None
    override_of: Optional[str] = None


# ---------------------------------------------------------------------------
# Lineage graph
# ---------------------------------------------------------------------------


class PlayerNode(BaseModel):
    kind: Literal["player"] = "player"
    id: str
    label: str
    player_id: str
    position: Optional[str] = None
    team: Optional[str] = None


class PickNode(BaseModel):
    kind: Literal["pick"] = "pick"
    id: str
    label: str
    season: str
    round: int
    slot: int
    original_owner: Optional[str] = None
    pick_in_round: Optional[int] = None
    became_player_id: Optional[str] = None
    became_name: Optional[str] = None


class TradeNode(BaseModel):
    kind: Literal["trade"] = "trade"
    id: str
    label: str
    trade_id: str
    date: Optional[str] = None


GraphNode = Annotated[Union[PlayerNode, PickNode, TradeNode], Field(discriminator="kind")]


class GraphEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    kind: Literal["traded", "became"]
    trade_id: Optional[str] = None


class TradeGraph(BaseModel):
    nodes: List[GraphNode] = []
    edges: List[GraphEdge] = []


class PlayerRoot(BaseModel):
    type: Literal["player"] = "player"
    player_id: str


class PickRoot(BaseModel):
    type: Literal["pick"] = "pick"
    season: str
    round: int
    slot: int


class TradeRoot(BaseModel):
    type: Literal["trade"] = "trade"
    trade_id: str


RootSelector = Union[PlayerRoot, PickRoot, TradeRoot]

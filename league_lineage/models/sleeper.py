from typing import List, Dict, Any, Optional
from pydantic import BaseModel


class League(BaseModel):
    league_id: str
    name: Optional[str] = None
    season: str
    total_rosters: Optional[int] = None
    status: Optional[str] = None
    previous_league_id: Optional[str] = None
    settings: Dict[str, Any] = {}


class Roster(BaseModel):
    roster_id: int
    league_id: Optional[str] = None
    owner_id: Optional[str] = None
    players: Optional[List[str]] = None
    settings: Dict[str, Any] = {}
    metadata: Optional[Dict[str, Any]] = None


class LeagueUser(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class Draft(BaseModel):
    draft_id: str
    league_id: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    season: str
    settings: Dict[str, Any] = {}
    # Keyed by user_id in most seasons, by roster_id in some older ones
    draft_order: Optional[Dict[str, Any]] = None
    # draft slot -> roster_id
    slot_to_roster_id: Optional[Dict[str, Any]] = None


class Pick(BaseModel):
    player_id: Optional[str] = None
    pick_no: Optional[int] = None
    round: int
    draft_slot: Optional[int] = None
    roster_id: Optional[int] = None
    draft_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class Player(BaseModel):
    player_id: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None
    team: Optional[str] = None


class TradedPick(BaseModel):
    season: str
    round: int
    roster_id: int  # ORIGINAL owner of the pick
    owner_id: int   # Current owner
    previous_owner_id: Optional[int] = None


class DraftPickMovement(BaseModel):
    season: str
    round: int
    roster_id: int  # ORIGINAL owner of the pick (who initially had this draft slot)
    owner_id: int   # NEW owner after this trade (who's receiving the pick)
    previous_owner_id: int  # Roster TRADING AWAY the pick in this transaction


class WaiverBudgetMovement(BaseModel):
    sender: int
    receiver: int
    amount: int = 0


class Transaction(BaseModel):
    transaction_id: str
    type: str
    status: str
    created: Optional[int] = None  # Unix timestamp in ms
    status_updated: Optional[int] = None  # Unix timestamp in ms
    leg: Optional[int] = None  # NFL week
    adds: Optional[Dict[str, int]] = None
    drops: Optional[Dict[str, int]] = None
    roster_ids: List[int] = []
    draft_picks: Optional[List[DraftPickMovement]] = None
    waiver_budget: Optional[List[WaiverBudgetMovement]] = None

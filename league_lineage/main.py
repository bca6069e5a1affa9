from contextlib import asynccontextmanager
from functools import lru_cache
from typing import List, Dict, Any, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from . import config, database
from .exceptions import InvalidManualTrade
from .logging_config import setup_logging
from .models.lineage import (
    BecameInfo,
    DraftOwnership,
    DraftPickAsset,
    ManualTradeIn,
    PickRoot,
    PlayerRoot,
    TradeGraph,
    TradeRecord,
    TradeRoot,
)
from .providers import SleeperProviders
from .services.became import DraftContextCache, PickBecameResolver
from .services.graph import build_graph, graph_stats
from .services.ownership import OwnershipService
from .services.subgraph import clamp_depth, extract_subgraph
from .services.trades import TradeService, validate_manual_trade


class LineageServices:
    """Process-wide wiring of providers, caches and services."""

    def __init__(self, league_id: Optional[str] = None):
        self.providers = SleeperProviders(league_id)
        self.manual_trades = database.ManualTradeRepository()
        self.draft_cache = DraftContextCache()
        self.became = PickBecameResolver(
            drafts=self.providers,
            rosters=self.providers,
            players=self.providers,
            cache=self.draft_cache,
            league_id=self.providers.league_id,
        )
        self.ownership = OwnershipService(
            rosters=self.providers,
            traded_picks=self.providers,
            manual_trades=self.manual_trades,
            transactions=self.providers,
        )
        self.trades = TradeService(
            transactions=self.providers,
            rosters=self.providers,
            players=self.providers,
            became=self.became,
            manual_trades=self.manual_trades,
        )


@lru_cache(maxsize=1)
def get_services() -> LineageServices:
    return LineageServices()


class TradeTreeResponse(BaseModel):
    graph: TradeGraph
    meta: Dict[str, Any]


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await database.create_tables()
    yield


app = FastAPI(lifespan=lifespan)

# Configure CORS for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    return {"Hello": "World"}


@app.get("/ownership/{season}", response_model=DraftOwnership)
async def get_pick_ownership(season: str, services: LineageServices = Depends(get_services)):
    """Current owner and transfer history of every pick of a season."""
    return await services.ownership.get_ownership(season)


@app.get("/ownership/{season}/roster/{roster_id}", response_model=List[DraftPickAsset])
async def get_roster_picks(season: str, roster_id: int, services: LineageServices = Depends(get_services)):
    """Picks of a season a roster currently holds."""
    return await services.ownership.get_team_picks(season, roster_id)


@app.get("/pick_became/{season}/{round}/{original_roster_id}", response_model=BecameInfo)
async def get_pick_became(season: str, round: int, original_roster_id: int, services: LineageServices = Depends(get_services)):
    """The player a pick turned into, once its round has been drafted."""
    if round <= 0:
        raise HTTPException(status_code=400, detail="Round must be positive")
    became = await services.became.resolve_became(season, round, original_roster_id)
    if became is None:
        raise HTTPException(status_code=404, detail="Pick has not been used yet or draft not found")
    return became


@app.get("/trade_graph", response_model=TradeGraph)
async def get_trade_graph(services: LineageServices = Depends(get_services)):
    """Lineage graph of every trade in league history."""
    trades = await services.trades.fetch_all_trades()
    return build_graph(trades)


@app.get("/trade_tree", response_model=TradeTreeResponse)
async def get_trade_tree(
    root_type: str,
    player_id: Optional[str] = None,
    season: Optional[str] = None,
    round: Optional[int] = None,
    slot: Optional[int] = None,
    trade_id: Optional[str] = None,
    depth: int = config.DEFAULT_SUBGRAPH_DEPTH,
    services: LineageServices = Depends(get_services),
):
    """Lineage around one player, pick or trade, up to ``depth`` hops."""
    if root_type == "player":
        if not player_id:
            raise HTTPException(status_code=400, detail="Missing player_id")
        root = PlayerRoot(player_id=player_id)
    elif root_type == "pick":
        if not season or round is None or slot is None:
            raise HTTPException(status_code=400, detail="Missing or invalid pick parameters: season, round, slot")
        root = PickRoot(season=season, round=round, slot=slot)
    elif root_type == "trade":
        if not trade_id:
            raise HTTPException(status_code=400, detail="Missing trade_id")
        root = TradeRoot(trade_id=trade_id)
    else:
        raise HTTPException(status_code=400, detail="Invalid root_type. Use player|pick|trade")

    depth = clamp_depth(depth)
    trades = await services.trades.fetch_all_trades()
    graph = extract_subgraph(build_graph(trades), root, depth)
    return TradeTreeResponse(graph=graph, meta={"depth": depth, **graph_stats(graph)})


@app.get("/manual_trades", response_model=List[TradeRecord])
async def list_manual_trades(year: Optional[str] = None, services: LineageServices = Depends(get_services)):
    return await services.manual_trades.list_trades(year=year)


@app.post("/manual_trades", response_model=TradeRecord, status_code=201)
async def save_manual_trade(payload: ManualTradeIn, services: LineageServices = Depends(get_services)):
    """Add a manual trade, or replace a platform trade via ``override_of``."""
    try:
        trade = validate_manual_trade(payload)
    except InvalidManualTrade as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await services.manual_trades.upsert_trade(trade)


@app.delete("/manual_trades/{trade_id}", status_code=204)
async def delete_manual_trade(trade_id: str, services: LineageServices = Depends(get_services)):
    if not await services.manual_trades.deactivate_trade(trade_id):
        raise HTTPException(status_code=404, detail="Manual trade not found")

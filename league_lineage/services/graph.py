import logging
import math
from typing import Callable, Dict, Iterable, List, Optional, Set, TypeVar

from pydantic import BaseModel

from ..models.lineage import (
    GraphEdge,
    PickNode,
    PlayerNode,
    TradeAsset,
    TradeGraph,
    TradeNode,
    TradeRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
NodeT = TypeVar("NodeT", bound=BaseModel)


def player_node_id(player_id: str) -> str:
    return f"player:{player_id}"


def pick_node_id(season: str, round: int, slot: int) -> str:
    return f"pick:{season}-{round}-{slot}"


def trade_node_id(trade_id: str) -> str:
    return f"trade:{trade_id}"


def match_node(
    node,
    on_player: Callable[[PlayerNode], T],
    on_pick: Callable[[PickNode], T],
    on_trade: Callable[[TradeNode], T],
) -> T:
    """Dispatch on the node variant; every variant must be handled."""
    if isinstance(node, PlayerNode):
        return on_player(node)
    if isinstance(node, PickNode):
        return on_pick(node)
    if isinstance(node, TradeNode):
        return on_trade(node)
    raise TypeError(f"Unknown graph node: {node!r}")


def coalesce_node(existing: Optional[NodeT], incoming: Optional[NodeT]) -> Optional[NodeT]:
    """Merge two observations of the same node. Known values win; blanks are filled."""
    if existing is None:
        return incoming
    if incoming is None:
        return existing
    updates = {
        field: value
        for field, value in incoming
        if value is not None and getattr(existing, field) is None
    }
    return existing.model_copy(update=updates) if updates else existing


def _pick_slot(asset: TradeAsset) -> Optional[int]:
    # Prefer the stable draft slot over the in-round position
    slot = asset.draft_slot if asset.draft_slot is not None else asset.pick_in_round
    if slot is None or not math.isfinite(slot):
        return None
    return int(slot)


class _GraphAccumulator:
    def __init__(self):
        self.nodes: Dict[str, BaseModel] = {}
        self.edges: List[GraphEdge] = []
        self.edge_ids: Set[str] = set()

    def add_node(self, node: NodeT) -> None:
        self.nodes[node.id] = coalesce_node(self.nodes.get(node.id), node)

    def add_edge(self, edge: GraphEdge) -> None:
        if edge.id in self.edge_ids:
            return
        self.edge_ids.add(edge.id)
        self.edges.append(edge)

    def to_graph(self) -> TradeGraph:
        return TradeGraph(nodes=list(self.nodes.values()), edges=self.edges)


def build_graph(trades: Iterable[TradeRecord]) -> TradeGraph:
    """
    Lineage graph of trades, the assets each team received, and the players
    picks became.

    Node and edge ids only depend on stable identifiers (player id, season /
    round / slot, trade id, team and asset position), so building twice from
    the same trades gives the same graph.
    """
    graph = _GraphAccumulator()

    for trade in trades:
        trade_id = trade_node_id(trade.id)
        graph.add_node(TradeNode(id=trade_id, label=f"Trade {trade.date}", trade_id=trade.id, date=trade.date))

        for team_index, team in enumerate(trade.teams):
            for asset_index, asset in enumerate(team.assets):
                edge_id = f"traded:{trade.id}:{team_index}:{asset_index}"

                if asset.type == "player":
                    if not asset.player_id:
                        logger.debug("Trade %s: player %r has no player id, skipping", trade.id, asset.name)
                        continue
                    node_id = player_node_id(asset.player_id)
                    graph.add_node(PlayerNode(
                        id=node_id,
                        label=asset.name,
                        player_id=asset.player_id,
                        position=asset.position,
                        team=asset.team,
                    ))
                    graph.add_edge(GraphEdge(id=edge_id, source=trade_id, target=node_id, kind="traded", trade_id=trade.id))

                elif asset.type == "pick":
                    season = asset.year
                    slot = _pick_slot(asset)
                    if not season or asset.round is None or slot is None:
                        logger.debug("Trade %s: pick %r lacks season/round/slot, skipping", trade.id, asset.name)
                        continue
                    node_id = pick_node_id(season, asset.round, slot)
                    graph.add_node(PickNode(
                        id=node_id,
                        label=asset.name or f"{season} R{asset.round} S{slot}",
                        season=season,
                        round=asset.round,
                        slot=slot,
                        original_owner=asset.original_owner,
                        pick_in_round=asset.pick_in_round,
                        became_player_id=asset.became_player_id,
                        became_name=asset.became,
                    ))
                    graph.add_edge(GraphEdge(id=edge_id, source=trade_id, target=node_id, kind="traded", trade_id=trade.id))

                    if asset.became_player_id:
                        player_id = player_node_id(asset.became_player_id)
                        graph.add_node(PlayerNode(
                            id=player_id,
                            label=asset.became or asset.became_player_id,
                            player_id=asset.became_player_id,
                            position=asset.became_position,
                            team=asset.became_team,
                        ))
                        graph.add_edge(GraphEdge(
                            id=f"became:{season}-{asset.round}-{slot}:{asset.became_player_id}",
                            source=node_id,
                            target=player_id,
                            kind="became",
                        ))

    return graph.to_graph()


def graph_stats(graph: TradeGraph) -> Dict[str, int]:
    stats = {"players": 0, "picks": 0, "trades": 0, "traded_edges": 0, "became_edges": 0}
    for node in graph.nodes:
        key = match_node(node, lambda n: "players", lambda n: "picks", lambda n: "trades")
        stats[key] += 1
    for edge in graph.edges:
        stats[f"{edge.kind}_edges"] += 1
    return stats

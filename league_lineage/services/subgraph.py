from collections import deque
from typing import Dict, Optional, Set

from .. import config
from ..models.lineage import (
    PickNode,
    PickRoot,
    PlayerNode,
    PlayerRoot,
    RootSelector,
    TradeGraph,
    TradeNode,
    TradeRoot,
)
from .graph import pick_node_id, player_node_id, trade_node_id


def clamp_depth(depth: int) -> int:
    return max(config.MIN_SUBGRAPH_DEPTH, min(config.MAX_SUBGRAPH_DEPTH, int(depth)))


def root_node_id(root: RootSelector) -> str:
    if isinstance(root, PlayerRoot):
        return player_node_id(root.player_id)
    if isinstance(root, PickRoot):
        return pick_node_id(root.season, root.round, root.slot)
    if isinstance(root, TradeRoot):
        return trade_node_id(root.trade_id)
    raise TypeError(f"Unknown root selector: {root!r}")


def synthetic_root_node(root: RootSelector):
    """Stand-in node for an asset that never appeared in a trade."""
    node_id = root_node_id(root)
    if isinstance(root, PlayerRoot):
        return PlayerNode(id=node_id, label=f"Player {root.player_id}", player_id=root.player_id)
    if isinstance(root, PickRoot):
        return PickNode(
            id=node_id,
            label=f"{root.season} R{root.round} S{root.slot}",
            season=root.season,
            round=root.round,
            slot=root.slot,
        )
    return TradeNode(id=node_id, label=f"Trade {root.trade_id}", trade_id=root.trade_id)


def extract_subgraph(graph: TradeGraph, root: RootSelector, depth: Optional[int] = None) -> TradeGraph:
    """
    Everything within ``depth`` hops of the root, ignoring edge direction.

    Returns the induced subgraph over the visited nodes. An unknown root is not
    an error: it means "no lineage" and yields just the root node.
    """
    depth = clamp_depth(config.DEFAULT_SUBGRAPH_DEPTH if depth is None else depth)
    root_id = root_node_id(root)

    if not any(node.id == root_id for node in graph.nodes):
        return TradeGraph(nodes=[synthetic_root_node(root)], edges=[])

    adjacency: Dict[str, Set[str]] = {}
    for edge in graph.edges:
        adjacency.setdefault(edge.source, set()).add(edge.target)
        adjacency.setdefault(edge.target, set()).add(edge.source)

    visited = {root_id}
    queue = deque([(root_id, 0)])
    while queue:
        node_id, hops = queue.popleft()
        if hops >= depth:
            continue
        for neighbor in adjacency.get(node_id, ()):
            if neighbor not in visited:
                visited.add(neighbor)
                queue.append((neighbor, hops + 1))

    return TradeGraph(
        nodes=[node for node in graph.nodes if node.id in visited],
        edges=[edge for edge in graph.edges if edge.source in visited and edge.target in visited],
    )

import pytest
from fastapi.testclient import TestClient

from league_lineage.main import app, get_services
from league_lineage.models.lineage import DraftInfo, DraftPickEvent, PlayerInfo, TradedPickRecord
from league_lineage.models.sleeper import Transaction
from league_lineage.services.became import PickBecameResolver
from league_lineage.services.ownership import OwnershipService
from league_lineage.services.trades import TradeService

from fakes import FakeLeague, InMemoryManualTrades, pick_asset, rosters, trade

SEASON = "2024"
TRANSACTION_ID = "1154488895422275584"


class FakeServices:
    def __init__(self, league: FakeLeague, manual_trades: InMemoryManualTrades):
        self.manual_trades = manual_trades
        self.became = PickBecameResolver(drafts=league, rosters=league, players=league, league_id="test")
        self.ownership = OwnershipService(
            rosters=league, traded_picks=league, manual_trades=manual_trades, transactions=league,
        )
        self.trades = TradeService(
            transactions=league,
            rosters=league,
            players=league,
            became=self.became,
            manual_trades=manual_trades,
        )


@pytest.fixture
def services():
    league = FakeLeague(
        rosters=rosters(1, 2),
        team_names={1: "Team X", 2: "Team Y"},
        rounds=2,
        drafts={SEASON: DraftInfo(draft_id="d2024", season=SEASON, roster_to_slot={1: 2, 2: 1})},
        picks={"d2024": [DraftPickEvent(round=1, draft_slot=2, pick_no=2, roster_id=2, player_id="P123")]},
        players={"P123": PlayerInfo(player_id="P123", name="Rookie Runner", position="RB", team="DET")},
        traded_picks=[TradedPickRecord(season=SEASON, round=2, roster_id=2, owner_id=1)],
        transactions={SEASON: [Transaction(**{
            "transaction_id": TRANSACTION_ID,
            "type": "trade",
            "status": "complete",
            "created": 1714521600000,
            "roster_ids": [1, 2],
            "draft_picks": [{"season": SEASON, "round": 1, "roster_id": 1, "owner_id": 2, "previous_owner_id": 1}],
        })]},
    )
    manual = InMemoryManualTrades([
        trade("manual-1", "2023-09-01", [("Team Y", [pick_asset(SEASON, 1, "Team X")])]),
    ])
    fake = FakeServices(league, manual)
    app.dependency_overrides[get_services] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client(services):
    return TestClient(app)


def test_read_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"Hello": "World"}


def test_get_pick_ownership(client):
    response = client.get(f"/ownership/{SEASON}")
    assert response.status_code == 200
    data = response.json()
    assert data["rounds"] == 2
    assert data["roster_count"] == 2
    assert data["roster_id_to_team"] == {"1": "Team X", "2": "Team Y"}
    slots = {(s["original_roster_id"], s["round"]): s for s in data["slots"]}
    assert slots[(1, 1)]["owner_roster_id"] == 2
    assert [e["trade_id"] for e in slots[(1, 1)]["history"]] == [TRANSACTION_ID, "manual-1"]
    assert slots[(2, 2)]["owner_roster_id"] == 1
    assert slots[(2, 2)]["history"] == []


def test_get_roster_picks(client):
    response = client.get(f"/ownership/{SEASON}/roster/1")
    assert response.status_code == 200
    assert [(p["round"], p["original_owner"]) for p in response.json()] == [(2, 1), (2, 2)]


def test_get_pick_became(client):
    response = client.get(f"/pick_became/{SEASON}/1/1")
    assert response.status_code == 200
    data = response.json()
    assert data["player_id"] == "P123"
    assert data["name"] == "Rookie Runner"
    assert data["draft_slot"] == 2
    assert data["pick_in_round"] == 2


def test_get_pick_became_not_drafted(client):
    assert client.get(f"/pick_became/{SEASON}/2/1").status_code == 404
    assert client.get("/pick_became/2031/1/1").status_code == 404
    assert client.get(f"/pick_became/{SEASON}/0/1").status_code == 400


def test_get_trade_graph(client):
    response = client.get("/trade_graph")
    assert response.status_code == 200
    data = response.json()
    node_ids = {n["id"] for n in data["nodes"]}
    assert node_ids == {f"trade:{TRANSACTION_ID}", "trade:manual-1", "pick:2024-1-2", "player:P123"}
    became = [e for e in data["edges"] if e["kind"] == "became"]
    assert [(e["from"], e["to"]) for e in became] == [("pick:2024-1-2", "player:P123")]


def test_get_trade_tree(client):
    response = client.get("/trade_tree", params={"root_type": "player", "player_id": "P123", "depth": 1})
    assert response.status_code == 200
    data = response.json()
    assert {n["id"] for n in data["graph"]["nodes"]} == {"player:P123", "pick:2024-1-2"}
    assert data["meta"]["depth"] == 1
    assert data["meta"]["players"] == 1
    assert data["meta"]["became_edges"] == 1


def test_get_trade_tree_pick_root(client):
    params = {"root_type": "pick", "season": SEASON, "round": 1, "slot": 2, "depth": 1}
    data = client.get("/trade_tree", params=params).json()
    assert {n["kind"] for n in data["graph"]["nodes"]} == {"pick", "trade", "player"}


def test_get_trade_tree_unknown_root(client):
    data = client.get("/trade_tree", params={"root_type": "trade", "trade_id": "ghost"}).json()
    assert data["graph"]["edges"] == []
    assert [n["label"] for n in data["graph"]["nodes"]] == ["Trade ghost"]
    assert data["meta"]["depth"] == 2


@pytest.mark.parametrize("params", [
    {"root_type": "player"},
    {"root_type": "pick", "season": SEASON, "round": 1},
    {"root_type": "trade"},
    {"root_type": "team"},
])
def test_get_trade_tree_bad_params(client, params):
    assert client.get("/trade_tree", params=params).status_code == 400


def test_manual_trade_lifecycle(client, services):
    payload = {
        "date": "2024-08-01",
        "status": "completed",
        "teams": [{"name": "Team X", "assets": [{"type": "faab", "name": "$10 FAAB", "amount": 10}]}],
        "override_of": TRANSACTION_ID,
    }
    response = client.post("/manual_trades", json=payload)
    assert response.status_code == 201
    trade_id = response.json()["id"]
    assert trade_id.startswith("manual-")

    listed = client.get("/manual_trades", params={"year": "2024"}).json()
    assert [t["id"] for t in listed] == [trade_id]

    graph_ids = {n["id"] for n in client.get("/trade_graph").json()["nodes"]}
    assert f"trade:{trade_id}" in graph_ids
    assert f"trade:{TRANSACTION_ID}" not in graph_ids

    assert client.delete(f"/manual_trades/{trade_id}").status_code == 204
    assert client.get("/manual_trades", params={"year": "2024"}).json() == []
    assert client.delete("/manual_trades/nope").status_code == 404


def test_save_manual_trade_rejects_bad_payload(client):
    response = client.post("/manual_trades", json={"date": "yesterday", "status": "completed", "teams": []})
    assert response.status_code == 400

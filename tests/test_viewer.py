# tests/test_viewer.py
import json

from viewer.main import InventoryView, StockViewer, ws_url


def _event(kind, item_id, **fields):
    return {"type": kind, "payload": {"id": item_id, **fields}}


def test_view_reconciles_create_update_delete():
    view = InventoryView()
    view.load([{"id": "a", "name": "A", "unitPrice": 1.0, "quantity": 1}])

    assert view.apply(_event("CREATE", "b", name="B")) == "CREATE"
    assert view.apply(_event("UPDATE", "a", name="A2")) == "UPDATE"
    assert view.apply(_event("DELETE", "b")) == "DELETE"

    assert view.items == {"a": {"id": "a", "name": "A2"}}


def test_view_ignores_unknown_and_idless_events():
    view = InventoryView()
    assert view.apply({"type": "RENAME", "payload": {"id": "a"}}) is None
    assert view.apply({"type": "CREATE", "payload": {}}) is None
    assert view.apply(_event("DELETE", "never-seen")) == "DELETE"
    assert len(view) == 0


def test_load_replaces_previous_state():
    view = InventoryView()
    view.apply(_event("CREATE", "stale"))
    view.load([{"id": "fresh"}])
    assert list(view.items) == ["fresh"]


def test_viewer_handles_frames_and_counts_garbage():
    viewer = StockViewer("http://example.test")
    viewer._handle(json.dumps(_event("CREATE", "x", name="Widget", quantity=2, unitPrice=1.5)))
    viewer._handle("not json")
    viewer._handle(json.dumps(["list"]))

    assert viewer.stats["events"] == 1
    assert viewer.stats["ignored"] == 2
    assert "x" in viewer.view.items


def test_ws_url():
    assert ws_url("http://localhost:8080") == "ws://localhost:8080/ws"
    assert ws_url("https://stock.example") == "wss://stock.example/ws"

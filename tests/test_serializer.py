import json
import pytest
from netmap.core import serializer
from netmap.core.events import Topic
from netmap.core.exceptions import DocumentError
from netmap.core.topology_manager import TopologyManager

def _strip_timestamp(document):
    document = dict(document)
    document.pop("timestamp")
    return document

@pytest.fixture
def wired(manager, two_routers):
    r1, r2 = two_routers
    manager.create_connection(r1, r2, "Gig0/0", "Gig0/0")
    manager.create_connection(r1, r2, "Serial0/0/0", "Serial0/0/0")
    manager.ui_state.theme = "dark"
    manager.ui_state.zoom_level = 1.5
    manager.ui_state.pan_position = {"x": 10, "y": -5}
    return manager

def test_document_shape(wired):
    doc = wired.serialize()
    assert doc["version"] == "1.0"
    assert doc["timestamp"]
    node = next(iter(doc["nodes"].values()))
    assert set(node) >= {"id", "type", "name", "position", "size", "icon",
                         "endpoints", "properties", "interfaces"}
    assert node["size"] == {"width": 100, "height": 100}
    assert set(node["endpoints"][0]) >= {"name", "type", "id", "nodeId", "originalName"}
    conn = next(iter(doc["connections"].values()))
    assert set(conn["sourceNode"]) == {"id", "interface", "interfaceType"}
    assert doc["uiState"] == {"theme": "dark", "zoomLevel": 1.5, "panPosition": {"x": 10, "y": -5}}

def test_round_trip(wired):
    doc = wired.serialize()
    text = serializer.dumps(doc)

    other = TopologyManager()
    assert other.deserialize(serializer.loads(text))
    assert _strip_timestamp(other.serialize()) == _strip_timestamp(doc)
    assert other.get_statistics() == wired.get_statistics()
    assert other.ui_state.theme == "dark"

def test_round_trip_keeps_wiring_rules(wired):
    other = TopologyManager()
    other.deserialize(wired.serialize())
    r1, r2 = sorted(other.get_all_nodes(), key=lambda n: n.name)
    # the loaded connections still occupy their endpoints
    assert other.create_connection(r2, r1, "Gig0/0", "Gig0/0") is None
    assert other.create_connection(r1, r2, "Gig0/1", "Gig0/1") is not None

def test_deserialize_accepts_json_text(wired):
    other = TopologyManager()
    assert other.deserialize(json.dumps(wired.serialize()))
    assert other.get_statistics()["totalConnections"] == 2

@pytest.mark.parametrize("document", [
    {"nodes": {}},
    {"connections": {}},
    {"nodes": [], "connections": {}},
    {"nodes": {"n1": ["not", "a", "node"]}, "connections": {}},
    {"nodes": {"n1": {"name": "R1", "endpoints": "eth0"}}, "connections": {}},
    "not json",
    None,
])
def test_invalid_document_leaves_topology_untouched(wired, document, recorder):
    before = _strip_timestamp(wired.serialize())
    assert wired.deserialize(document) is False
    assert _strip_timestamp(wired.serialize()) == before
    assert recorder == []

def test_dangling_connections_are_skipped(manager, two_routers, recorder, dummy_logger):
    doc = {
        "version": "1.0",
        "nodes": {
            "a": {"id": "a", "type": "router", "name": "A",
                  "endpoints": [{"name": "eth0", "type": "ethernet"}]},
            "b": {"id": "b", "type": "router", "name": "B",
                  "endpoints": [{"name": "eth0", "type": "ethernet"}]},
        },
        "connections": {
            "c1": {"id": "c1",
                   "sourceNode": {"id": "a", "interface": "eth0", "interfaceType": "ethernet"},
                   "targetNode": {"id": "b", "interface": "eth0", "interfaceType": "ethernet"}},
            "c2": {"id": "c2",
                   "sourceNode": {"id": "a", "interface": "eth0"},
                   "targetNode": {"id": "ghost", "interface": "eth0"}},
            "c3": {"id": "c3", "sourceNode": "a"},
            "c4": {"sourceNode": {"id": ["a"], "interface": "eth0"},
                   "targetNode": {"id": "b", "interface": "eth0"}},
            "c5": {"sourceNode": {"id": "a", "interface": 7},
                   "targetNode": {"id": "b", "interface": "eth0"}},
        },
    }
    assert manager.deserialize(doc)
    assert list(manager.store.connections) == ["c1"]
    assert manager.get_statistics() == {"totalNodes": 2, "totalConnections": 1, "totalEndpoints": 2}
    assert "missing nodes" in dummy_logger.text
    for conn_id in ("c3", "c4", "c5"):
        assert f"Connection '{conn_id}' is malformed" in dummy_logger.text
    loaded = [payload for topic, payload in recorder if topic is Topic.TOPOLOGY_LOADED]
    assert len(loaded) == 1
    assert sorted(loaded[0]["skipped"]) == ["c2", "c3", "c4", "c5"]

def test_load_skips_connections_that_break_wiring_rules(manager):
    doc = {
        "nodes": {
            "a": {"type": "router", "name": "A", "endpoints": [{"name": "eth0", "type": "ethernet"}]},
            "b": {"type": "router", "name": "B", "endpoints": [{"name": "eth0", "type": "ethernet"},
                                                                {"name": "s0", "type": "serial"}]},
        },
        "connections": {
            "c1": {"sourceNode": {"id": "a", "interface": "eth0"}, "targetNode": {"id": "b", "interface": "eth0"}},
            "c2": {"sourceNode": {"id": "a", "interface": "eth0"}, "targetNode": {"id": "b", "interface": "s0"}},
        },
    }
    assert manager.deserialize(doc)
    assert list(manager.store.connections) == ["c1"]
    # node ids fall back to the mapping key and sizes to the default
    assert manager.get_node("a").size.width == 100

def test_deserialize_emits_only_topology_loaded(manager, wired, recorder):
    doc = wired.serialize()
    recorder.clear()
    other = TopologyManager()
    loaded = []
    other.on(Topic.TOPOLOGY_LOADED, loaded.append)
    other.on(Topic.NODE_ADDED, loaded.append)
    assert other.deserialize(doc)
    assert len(loaded) == 1
    assert loaded[0]["skipped"] == []
    assert sorted(loaded[0]["connections"]) == sorted(doc["connections"])

def test_unknown_keys_pass_through(manager):
    doc = {
        "nodes": {"a": {"id": "a", "type": "router", "name": "A", "libraryData": {"x": 1},
                        "endpoints": [{"name": "eth0", "type": "ethernet", "speed": "1G"}]}},
        "connections": {},
    }
    assert manager.deserialize(doc)
    node = manager.serialize()["nodes"]["a"]
    assert node["libraryData"] == {"x": 1}
    assert node["endpoints"][0]["speed"] == "1G"

def test_json_file_helpers(wired, tmp_path):
    path = tmp_path / "topology.json"
    serializer.to_json_file(wired, path)
    other = TopologyManager()
    assert serializer.from_json_file(other, path)
    assert other.get_statistics() == wired.get_statistics()

def test_json_file_with_bad_json_returns_false(wired, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text('{"nodes": {', encoding="utf-8")
    before = wired.get_statistics()
    assert serializer.from_json_file(wired, path) is False
    assert wired.get_statistics() == before

def test_json_file_is_utf8(manager, tmp_path):
    manager.add_node({"name": "Zürich-Core", "type": "router"})
    path = tmp_path / "topology.json"
    serializer.to_json_file(manager, path)
    other = TopologyManager()
    assert serializer.from_json_file(other, path)
    assert other.get_all_nodes()[0].name == "Zürich-Core"

def test_loads_rejects_bad_json():
    with pytest.raises(DocumentError):
        serializer.loads("{nodes:")

import pytest
from netmap.core.config import TopologyConfig
from netmap.core.history import Action, HistoryManager
from netmap.core.topology.node import Position
from netmap.core.topology_manager import TopologyManager

@pytest.fixture
def tracked():
    return TopologyManager(history=HistoryManager())

def _router(manager, name):
    return manager.add_node({"name": name, "type": "router",
                             "endpoints": [{"name": "Gig0/0", "type": "ethernet"}]})

def test_undo_redo_walk(tracked):
    r1 = _router(tracked, "R1")
    r2 = _router(tracked, "R2")
    conn = tracked.create_connection(r1, r2, "Gig0/0", "Gig0/0")
    history = tracked.history
    assert history.get_state() == {"canUndo": True, "canRedo": False,
                                   "undoStackSize": 3, "redoStackSize": 0}

    assert history.undo()
    assert tracked.get_connection(conn.id) is None
    assert history.undo()
    assert tracked.get_node(r2.id) is None
    assert history.get_state()["undoStackSize"] == 1
    assert history.get_state()["redoStackSize"] == 2

    assert history.redo()
    assert tracked.get_node(r2.id) is r2
    assert history.redo()
    assert tracked.get_connection(conn.id) is conn
    assert history.get_state() == {"canUndo": True, "canRedo": False,
                                   "undoStackSize": 3, "redoStackSize": 0}

def test_undo_node_removal_restores_its_connections(tracked):
    r1 = _router(tracked, "R1")
    r2 = _router(tracked, "R2")
    conn = tracked.create_connection(r1, r2, "Gig0/0", "Gig0/0")
    tracked.remove_node(r2.id)
    assert tracked.get_statistics()["totalConnections"] == 0

    assert tracked.history.undo()
    assert tracked.get_node(r2.id) is r2
    assert tracked.get_connection(conn.id) is conn
    assert tracked.get_node_connections(r1.id) == [conn]

def test_undo_move(tracked):
    r1 = _router(tracked, "R1")
    tracked.move_node(r1.id, 200, 300)
    tracked.history.undo()
    assert r1.position == Position(0, 0)
    tracked.history.redo()
    assert r1.position == Position(200, 300)

def test_new_action_clears_redo(tracked):
    _router(tracked, "R1")
    tracked.history.undo()
    assert tracked.history.get_state()["canRedo"]
    _router(tracked, "R2")
    assert not tracked.history.get_state()["canRedo"]

def test_rejected_connection_is_not_recorded(tracked):
    r1 = _router(tracked, "R1")
    assert tracked.create_connection(r1, r1, "Gig0/0", "Gig0/0") is None
    assert tracked.history.get_state()["undoStackSize"] == 1

def test_reset_and_load_clear_history(tracked):
    _router(tracked, "R1")
    doc = tracked.serialize()
    tracked.reset_topology()
    assert not tracked.history.get_state()["canUndo"]
    _router(tracked, "R2")
    assert tracked.deserialize(doc)
    assert not tracked.history.get_state()["canUndo"]

def test_history_size_comes_from_config():
    manager = TopologyManager.with_history(TopologyConfig(history_size=2))
    for name in ("R1", "R2", "R3"):
        _router(manager, name)
    assert manager.history.get_state()["undoStackSize"] == 2

def test_empty_stacks():
    history = HistoryManager()
    assert history.undo() is False
    assert history.redo() is False

def test_max_size_drops_oldest():
    history = HistoryManager(max_size=2)
    calls = []
    for i in range(3):
        history.add_action(Action(lambda: None, lambda i=i: calls.append(i), f"a{i}"))
    assert history.get_state()["undoStackSize"] == 2
    history.undo()
    history.undo()
    assert history.undo() is False
    assert calls == [2, 1]

def test_failing_undo_is_logged(dummy_logger):
    history = HistoryManager()

    def broken():
        raise RuntimeError("cannot revert")

    history.add_action(Action(lambda: None, broken, "broken action"))
    assert history.undo() is False
    assert "Error undoing 'broken action'" in dummy_logger.text
    assert history.get_state()["canRedo"] is False

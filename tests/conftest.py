import pytest
from netmap.core.topology_manager import TopologyManager

@pytest.fixture
def manager():
    return TopologyManager()

@pytest.fixture
def two_routers(manager):
    r1 = manager.add_node({
        "name": "R1",
        "type": "router",
        "position": {"x": 100, "y": 200},
        "endpoints": [
            {"name": "Gig0/0", "type": "ethernet"},
            {"name": "Gig0/1", "type": "ethernet"},
            {"name": "Serial0/0/0"},
        ],
    })
    r2 = manager.add_node({
        "name": "R2",
        "type": "router",
        "position": {"x": 400, "y": 200},
        "endpoints": [
            {"name": "Gig0/0", "type": "ethernet"},
            {"name": "Gig0/1", "type": "ethernet"},
            {"name": "Serial0/0/0"},
        ],
    })
    return r1, r2

@pytest.fixture
def recorder(manager):
    """Collect (topic, payload) pairs for every event the manager emits."""
    from netmap.core.events import Topic
    events = []
    for topic in Topic:
        manager.on(topic, lambda payload, t=topic: events.append((t, payload)))
    return events

@pytest.fixture
def dummy_logger(caplog):
    caplog.set_level("DEBUG")
    return caplog

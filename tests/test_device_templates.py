import json
import pytest
from netmap.inout.device_templates import endpoints_from_template, load_device_endpoints, template_name

@pytest.fixture
def template_dir(tmp_path):
    (tmp_path / "router.json").write_text(json.dumps({
        "model": "ISR4321",
        "interfaces": [
            {"name": "GigabitEthernet0/0/0", "type": "ethernet"},
            {"name": "Serial0/1/0", "type": "serial", "clock": 64000},
        ],
    }))
    (tmp_path / "switch.yaml").write_text(
        "interfaces:\n"
        "  - name: FastEthernet0/1\n"
        "  - name: FastEthernet0/2\n"
        "    type: ethernet\n"
    )
    (tmp_path / "broken.yml").write_text("interfaces:\n  - type: ethernet\n")
    (tmp_path / "garbage.json").write_text("{interfaces: [")
    return tmp_path

@pytest.mark.parametrize("key, expected", [
    ("router", "router"),
    ("/assets/icons/router.svg", "router"),
    ("icons\\switch.PNG", "switch"),
    ("server.yaml", "server"),
])
def test_template_name(key, expected):
    assert template_name(key) == expected

def test_load_json_template(template_dir):
    template = load_device_endpoints("/assets/icons/router.svg", template_dir)
    assert [i["name"] for i in template["interfaces"]] == ["GigabitEthernet0/0/0", "Serial0/1/0"]
    assert template["interfaces"][1]["clock"] == 64000

def test_load_yaml_template(template_dir):
    template = load_device_endpoints("switch", template_dir)
    assert len(template["interfaces"]) == 2

@pytest.mark.parametrize("key", ["firewall", "broken", "garbage"])
def test_missing_or_invalid_template(template_dir, key, dummy_logger):
    assert load_device_endpoints(key, template_dir) is None
    assert any(r.levelname == "ERROR" for r in dummy_logger.records)

def test_template_feeds_add_node(template_dir, manager):
    endpoints = endpoints_from_template(load_device_endpoints("router", template_dir))
    r1 = manager.add_node({"name": "R1", "type": "router", "endpoints": endpoints})
    r2 = manager.add_node({"name": "R2", "type": "router", "endpoints": endpoints})
    assert [ep.name for ep in r1.endpoints] == ["GigabitEthernet0/0/0", "Serial0/1/0"]
    assert r1.endpoints[0].id != r2.endpoints[0].id
    assert manager.create_connection(r1, r2, "Serial0/1/0", "Serial0/1/0") is not None

def test_endpoints_from_empty_template():
    assert endpoints_from_template(None) == []

import pytest

from vmpanel.config import ConfigError, MachineConfig


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "machine.qte"


def test_missing_file_starts_fresh_document(config_path):
    config = MachineConfig()
    assert config.load(config_path) is False
    assert config.option_names("machine") == []


def test_set_option_persists_to_file(config_path):
    config = MachineConfig(config_path)
    config.set_option("machine", "", "name", "Test Box")
    reloaded = MachineConfig()
    assert reloaded.load(config_path) is True
    assert reloaded.get_option("machine", "", "name") == "Test Box"


def test_saved_file_has_root_element(config_path):
    config = MachineConfig(config_path)
    config.set_option("machine", "", "memory", 128)
    text = config_path.read_text(encoding="utf-8")
    assert text.startswith("<qtemu>")
    assert "<memory>128</memory>" in text


def test_get_missing_option_stores_default(config_path):
    config = MachineConfig(config_path)
    assert config.get_option("machine", "", "cpus", 2) == 2
    assert config.option_names("machine") == ["cpus"]
    assert MachineConfig(config_path).get_option("machine", "", "cpus") == "2"


def test_booleans_are_stored_as_text(config_path):
    config = MachineConfig(config_path)
    config.set_option("machine", "", "snapshot", False)
    config.set_option("machine", "", "mouse", True)
    assert config.get_option("machine", "", "snapshot") == "false"
    assert config.get_option("machine", "", "mouse") == "true"


def test_none_is_stored_as_empty_text(config_path):
    config = MachineConfig(config_path)
    assert config.get_option("machine", "", "notes") is None
    assert config.get_option("machine", "", "notes") == ""


def test_nested_nodes(config_path):
    config = MachineConfig(config_path)
    config.set_option("net-guest", "guest0", "mac", "random")
    config.set_option("net-guest", "guest0", "nic", "rtl8139")
    config.set_option("net-guest", "guest1", "mac", "random")
    assert config.option_names("net-guest", "") == ["guest0", "guest1"]
    assert config.option_names("net-guest", "*") == ["mac", "nic"]
    assert config.option_names("net-guest", "guest1") == ["mac"]
    assert config.option_count("net-guest", "") == 2
    assert config.option_count("net-guest", "guest0") == 2
    assert config.get_option("net-guest", "guest0", "nic") == "rtl8139"


def test_option_count_of_missing_node_is_zero(config_path):
    config = MachineConfig(config_path)
    assert config.option_count("net-host", "") == 0
    assert config.option_names("net-host", "host0") == []


def test_replacing_keeps_position(config_path):
    config = MachineConfig(config_path)
    for name in ("a", "b", "c"):
        config.set_option("machine", "", name, name)
    config.set_option("machine", "", "b", "changed")
    assert config.option_names("machine") == ["a", "b", "c"]
    assert config.get_option("machine", "", "b") == "changed"


def test_clear_option(config_path):
    config = MachineConfig(config_path)
    config.set_option("net-guest", "", "guest0", "x")
    config.set_option("net-guest", "", "guest1", "y")
    config.clear_option("net-guest", "", "guest0")
    assert config.option_names("net-guest") == ["guest1"]
    assert MachineConfig(config_path).option_names("net-guest") == ["guest1"]


def test_clear_missing_option_is_harmless(config_path):
    config = MachineConfig(config_path)
    config.set_option("machine", "", "name", "n")
    config.clear_option("machine", "", "absent")
    config.clear_option("nowhere", "deeper", "absent")
    assert config.option_names("machine") == ["name"]


def test_subscribers_are_notified(config_path):
    config = MachineConfig(config_path)
    events = []
    unsubscribe = config.subscribe(lambda *args: events.append(args))
    config.set_option("net-host", "host0", "type", "User Mode")
    assert events == [("net-host", "host0", "type", "User Mode")]
    unsubscribe()
    config.set_option("net-host", "host0", "type", "Bridged")
    assert len(events) == 1


def test_in_memory_config_cannot_save_without_path():
    config = MachineConfig()
    config.set_option("machine", "", "name", "memory only")
    assert config.get_option("machine", "", "name") == "memory only"
    with pytest.raises(ConfigError):
        config.save()


def test_save_to_explicit_path(tmp_path):
    config = MachineConfig()
    config.set_option("machine", "", "name", "exported")
    target = tmp_path / "copy.qte"
    config.save(target)
    assert MachineConfig(target).get_option("machine", "", "name") == "exported"


def test_wrong_root_is_rejected(config_path):
    config_path.write_text("<other><machine/></other>", encoding="utf-8")
    with pytest.raises(ConfigError):
        MachineConfig(config_path)


def test_wrong_version_is_rejected(config_path):
    config_path.write_text('<qtemu version="2.0"/>', encoding="utf-8")
    with pytest.raises(ConfigError):
        MachineConfig(config_path)


def test_matching_version_is_accepted(config_path):
    config_path.write_text(
        '<qtemu version="1.0"><machine><name>v</name></machine></qtemu>',
        encoding="utf-8",
    )
    assert MachineConfig(config_path).get_option("machine", "", "name") == "v"


def test_malformed_file_is_rejected(config_path):
    config_path.write_text("<qtemu><machine>", encoding="utf-8")
    with pytest.raises(ConfigError):
        MachineConfig(config_path)
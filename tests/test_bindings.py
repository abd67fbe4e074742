import pytest

from vmpanel.bindings import (
    ButtonGroupWidget,
    ChoiceWidget,
    EnableWidget,
    MachineConfigObject,
    PropertyBag,
    RadioWidget,
    TextWidget,
    ToggleWidget,
    ValueWidget,
)
from vmpanel.config import MachineConfig


@pytest.fixture
def config():
    return MachineConfig()


@pytest.fixture
def binder(config):
    return MachineConfigObject(config)


def test_text_widget_takes_default_and_stores_it(binder, config):
    name = TextWidget()
    binder.register(name, "name", "alpha")
    assert name.text == "alpha"
    assert config.get_option("machine", "", "name") == "alpha"


def test_text_widget_edit_reaches_config(binder, config):
    name = TextWidget()
    binder.register(name, "name", "alpha")
    name.set_text("beta")
    assert config.get_option("machine", "", "name") == "beta"


def test_config_change_updates_text_widget(binder, config):
    notes = TextWidget()
    binder.register(notes, "notes", "")
    config.set_option("machine", "", "notes", "hello")
    assert notes.text == "hello"


def test_toggle_round_trip(binder, config):
    snapshot = ToggleWidget(checked=True)
    binder.register(snapshot, "snapshot", False)
    assert snapshot.checked is False
    assert config.get_option("machine", "", "snapshot") == "false"
    snapshot.set_checked(True)
    assert config.get_option("machine", "", "snapshot") == "true"
    assert snapshot.checked is True


def test_toggle_with_mapped_values(binder, config):
    mouse = ToggleWidget(value_if_true="on", value_if_false="off")
    binder.register(mouse, "mouse", "on")
    assert mouse.checked is True
    mouse.set_checked(False)
    assert config.get_option("machine", "", "mouse") == "off"
    config.set_option("machine", "", "mouse", "on")
    assert mouse.checked is True


def test_radio_with_value_checks_on_match_only(binder, config):
    first = RadioWidget(value="a")
    second = RadioWidget(value="b")
    binder.register(first, "choice", "x")
    binder.register(second, "choice", "x")
    config.set_option("machine", "", "choice", "b")
    assert second.checked is True
    assert first.checked is False


def test_radio_without_value_acts_as_boolean(binder, config):
    radio = RadioWidget()
    binder.register(radio, "flag", True)
    assert radio.checked is True
    radio.set_checked(False)
    assert config.get_option("machine", "", "flag") == "false"


def test_choice_selects_by_data_and_stores_data(binder, config):
    combo = ChoiceWidget([("User Mode", "user"), ("Bridged", "bridge")])
    binder.register(combo, "net", "bridge")
    assert combo.current_index == 1
    combo.select(0)
    assert config.get_option("machine", "", "net") == "user"


def test_choice_selects_by_text(binder, config):
    combo = ChoiceWidget(["rtl8139", "e1000"])
    binder.register(combo, "nic", "e1000")
    assert combo.current_index == 1
    assert combo.text == "e1000"


def test_editable_choice_takes_unknown_text(binder, config):
    combo = ChoiceWidget(["rtl8139", "e1000"], editable=True)
    binder.register(combo, "nic", "rtl8139")
    config.set_option("machine", "", "nic", "virtio")
    assert combo.text == "virtio"
    assert combo.current_index == 0
    combo.set_edit_text("pcnet")
    assert config.get_option("machine", "", "nic") == "pcnet"


def test_non_editable_choice_rejects_free_text():
    combo = ChoiceWidget(["a"])
    with pytest.raises(ValueError):
        combo.set_edit_text("b")


def test_value_widget_round_trip_and_bad_text(binder, config):
    memory = ValueWidget()
    binder.register(memory, "memory", 128)
    assert memory.value == 128
    config.set_option("machine", "", "memory", "abc")
    assert memory.value == 0
    memory.set_value(256)
    assert config.get_option("machine", "", "memory") == "256"


def test_button_group_round_trip(binder, config):
    group = ButtonGroupWidget([("OSS", None), ("ALSA", "alsa")])
    binder.register(group, "sound", "OSS")
    assert group.checked == 0
    group.click(1)
    assert config.get_option("machine", "", "sound") == "alsa"
    config.set_option("machine", "", "sound", "OSS")
    assert group.checked == 0


def test_enable_widget_follows_boolean(binder, config):
    frame = EnableWidget()
    binder.register(frame, "usbSupport", True)
    assert frame.enabled is True
    config.set_option("machine", "", "usbSupport", "false")
    assert frame.enabled is False


def test_property_bag_mirrors_whole_node(binder, config):
    config.set_option("net-guest", "guest0", "mac", "random")
    config.set_option("net-guest", "guest0", "nic", "rtl8139")
    bag = PropertyBag()
    binder.register(bag, node_type="net-guest", node_name="guest0")
    assert bag.as_dict() == {"mac": "random", "nic": "rtl8139"}
    bag.set("mac", "fixed")
    assert config.get_option("net-guest", "guest0", "mac") == "fixed"
    config.set_option("net-guest", "guest0", "nic", "e1000")
    assert bag.get("nic") == "e1000"


def test_property_bag_ignores_other_node_names(binder, config):
    config.set_option("net-host", "host0", "type", "User Mode")
    bag = PropertyBag()
    binder.register(bag, node_type="net-host", node_name="host0")
    config.set_option("net-host", "host1", "type", "Bridged")
    assert bag.get("type") == "User Mode"


def test_unregister_stops_updates_and_clears_bag(binder, config):
    name = TextWidget()
    binder.register(name, "name", "alpha")
    binder.unregister(name)
    config.set_option("machine", "", "name", "gamma")
    assert name.text == "alpha"
    name.set_text("delta")
    assert config.get_option("machine", "", "name") == "gamma"

    config.set_option("machine", "", "hdd", "disk.img")
    bag = PropertyBag()
    binder.register(bag)
    assert bag.get("hdd") == "disk.img"
    binder.unregister(bag)
    assert "hdd" not in bag


def test_register_errors(binder):
    with pytest.raises(ValueError):
        binder.register(TextWidget())
    with pytest.raises(TypeError):
        binder.register(object(), "name")


def test_widget_changed_requires_registration(binder):
    with pytest.raises(KeyError):
        binder.widget_changed(TextWidget())


def test_short_syntax_uses_machine_node(binder, config):
    binder.set_option("vncPort", 1001)
    assert config.get_option("machine", "", "vncPort") == "1001"
    assert binder.get_option("vncPort") == "1001"


def test_changes_persist_to_file(tmp_path):
    path = tmp_path / "vm.qte"
    binder = MachineConfigObject(MachineConfig(path))
    name = TextWidget()
    binder.register(name, "name", "alpha")
    name.set_text("saved")
    reloaded = MachineConfig(path)
    assert reloaded.get_option("machine", "", "name") == "saved"


def test_default_config_is_in_memory():
    binder = MachineConfigObject()
    toggle = ToggleWidget()
    binder.register(toggle, "acpi", True)
    assert toggle.checked is True
    assert binder.config.path is None
# vmpanel

`vmpanel` is the non-graphical core of a manager for QEMU virtual machines.
It stores each machine's settings in an XML file, keeps bound controls in
step with those settings, inspects and converts disk images with `qemu-img`,
tracks USB and optical devices as they come and go, and encodes the messages
exchanged with tools running inside a guest.

It uses only the Python standard library and supports Python 3.10 and later.
Install the `test` extra to run the tests with pytest.

## Modules

| Module | What it does |
| --- | --- |
| `vmpanel.config` | `MachineConfig`: an XML machine file of options grouped by node type and node name, written back on every change. `ConfigError` is raised for unreadable or foreign files. |
| `vmpanel.settings` | `Settings` (a key/value store kept in a JSON file), `Preferences`, `load_preferences`, `save_preferences`, `language_index`, `language_for_index` and `default_command`. |
| `vmpanel.bindings` | `MachineConfigObject`: binds controls (`ToggleWidget`, `RadioWidget`, `ChoiceWidget`, `TextWidget`, `ValueWidget`, `ButtonGroupWidget`, `EnableWidget`) and `PropertyBag` objects to options of a `MachineConfig`. |
| `vmpanel.interfaces` | `GuestInterfaceModel` and `HostInterfaceModel`: table views over a machine's network interfaces. |
| `vmpanel.disks` | `parse_image_info`, `ImageInfo`, `HardDiskManager` and `DiskImageError`: reading `qemu-img info` output and converting images to qcow2. |
| `vmpanel.devices` | `DeviceRegistry`, `UsbDevice` and `OpticalDevice`: known devices and change notifications. |
| `vmpanel.guesttools` | `encode_frame`, `FrameDecoder`, `GuestToolsListener` and `ProtocolError`: length-prefixed messages for guest tool modules. |
| `vmpanel.helpfiles` | `help_location` and `help_file`: finding the installed help pages, preferring a language. |
| `vmpanel.toolbar` | `FloatingToolBar`, `Side`, `AnimState`, `nearest_side` and `fit_splash`: geometry and slide animation of a fullscreen toolbar, and splash sizing. |
| `vmpanel.machine` | `classify_error`, `ErrorKind`, `sibling_path`, `screendump_command` and `ButtonStates`: the rules behind a machine's control panel. |

## A machine file

```python
from vmpanel.config import MachineConfig

config = MachineConfig("mymachine.qte")
config.set_option("machine", "", "name", "Test machine")
config.get_option("machine", "", "memory", "256")   # missing: stored and returned
config.option_names("machine", "")                  # ["name", "memory"]
```

When the file cannot be read, a fresh document is started and saved to that
path on the first change. A file whose root element is not `qtemu`, or whose
`version` attribute is not `1.0`, raises `ConfigError`. Values are stored as
text; booleans become `true` and `false`. A callback given to `subscribe`
is called with the node type, node name, option name and value of every
option that is set; `subscribe` returns a function that removes it.

## Binding controls

```python
from vmpanel.bindings import MachineConfigObject, TextWidget

binder = MachineConfigObject(config)
name = TextWidget()
binder.register(name, "name")   # name.text now shows "Test machine"
name.set_text("Renamed")        # stored in the machine file
```

Changes made to the configuration update every registered control bound to
that option. A `PropertyBag` registered without an option name mirrors every
option of its node, and each `set` on it is stored.

## Network interfaces

```python
from vmpanel.interfaces import GuestInterfaceModel

model = GuestInterfaceModel(binder)
model.insert_rows(1)
model.row_count()        # 1
model.header(0)          # "name"
```

New guest interfaces start as an rtl8139 card with a random MAC address;
new host interfaces start in user mode with interface names derived from the
machine name.

## Disk images

`parse_image_info` turns the text printed by `qemu-img info` into an
`ImageInfo`. Images in any format other than qcow2 can be upgraded; only
qcow2 images outside snapshot mode can be suspended; an image can be resumed
when it lists a snapshot named `Default`. `HardDiskManager.test_image` runs
`qemu-img` (falling back to `kvm-img`), reports format `none` for a missing
file, and raises `DiskImageError` when no tool can be run.
`upgrade_image` converts an image to a `.qcow` file beside it.

## Devices

`DeviceRegistry.device_added` takes a device name, a mapping of its
properties and its capabilities. USB devices that are not hubs and drives
with the `storage.cdrom` capability are recorded; a `volume.disc` marks a
disc in a known drive. Subscribe to `device_added`, `device_removed`,
`usb_added`, `usb_removed`, `optical_added` or `optical_removed` to hear of
changes.

## Guest tools

A message carries a module name and a value behind an eight-byte big-endian
length. `FrameDecoder.feed` accepts bytes in whatever pieces they arrive and
returns each complete message. `GuestToolsListener` hands each message to the
handler registered under its module name and sends replies through the
function it was given.

## What the package does not do

There is no graphical interface and no command to run: the package provides
the models and rules, not the windows. It does not start or stop the
emulator itself, display a guest's screen, or query the system for devices;
`DeviceRegistry` only records what it is told, and `GuestToolsListener`
works on bytes handed to it rather than opening a socket.
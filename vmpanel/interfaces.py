"""Table models over the guest and host network interfaces of a machine."""

from __future__ import annotations

from typing import Any, Sequence

from vmpanel.bindings import MachineConfigObject

GUEST_NODE_TYPE = "net-guest"
HOST_NODE_TYPE = "net-host"


def _underscored(text: Any) -> str:
    return ("" if text is None else str(text)).replace(" ", "_")


class InterfaceModel:
    """Rows are the interface nodes under ``node_type``; columns are option names."""

    def __init__(
        self,
        config_object: MachineConfigObject,
        node_type: str,
        columns: Sequence[str],
    ) -> None:
        self.config_object = config_object
        self.node_type = node_type
        self.columns = list(columns)

    @property
    def config(self):
        return self.config_object.config

    def _row_names(self) -> list[str]:
        return self.config.option_names(self.node_type, "")

    def row_count(self) -> int:
        return self.config.option_count(self.node_type, "")

    def column_count(self) -> int:
        return len(self.columns)

    def row_name(self, row: int) -> str:
        """Node name of the interface in ``row``."""
        names = self._row_names()
        if not 0 <= row < len(names):
            raise IndexError(f"no interface at row {row}")
        return names[row]

    def column_name(self, column: int) -> str:
        if not 0 <= column < len(self.columns):
            raise IndexError(f"no column {column}")
        return self.columns[column]

    def header(self, section: int) -> str:
        return self.column_name(section)

    def data(self, row: int, column: int) -> Any:
        return self.config_object.get_option(
            self.column_name(column), None, self.node_type, self.row_name(row)
        )

    def set_data(self, row: int, column: int, value: Any) -> bool:
        self.config.set_option(
            self.node_type, self.row_name(row), self.column_name(column), value
        )
        return True

    def remove_rows(self, row: int, count: int) -> bool:
        """Remove ``count`` interfaces starting at ``row``."""
        names = self._row_names()
        if count < 0 or row < 0 or row + count > len(names):
            raise IndexError(f"cannot remove {count} rows from row {row}")
        for name in names[row:row + count]:
            self.config.clear_option(self.node_type, "", name)
        return True

    def _free_names(self, prefix: str, count: int) -> list[tuple[int, str]]:
        taken = set(self._row_names())
        found: list[tuple[int, str]] = []
        number = 0
        while len(found) < count:
            name = f"{prefix}{number}"
            if name not in taken:
                found.append((number, name))
                taken.add(name)
            number += 1
        return found


class GuestInterfaceModel(InterfaceModel):
    """Network cards seen by the guest."""

    def __init__(self, config_object: MachineConfigObject) -> None:
        super().__init__(config_object, GUEST_NODE_TYPE, ("name", "mac", "enabled"))

    def insert_rows(self, count: int) -> bool:
        """Add ``count`` guest interfaces with default settings."""
        for number, node in self._free_names("guest", count):
            options = {
                "name": f"Interface {number}",
                "nic": "rtl8139",
                "mac": "random",
                "randomize": False,
                "host": f"Interface {number}",
                "enabled": True,
            }
            for option, value in options.items():
                self.config_object.set_option(option, value, self.node_type, node)
        return True


class HostInterfaceModel(InterfaceModel):
    """Host-side network back ends."""

    def __init__(self, config_object: MachineConfigObject) -> None:
        super().__init__(config_object, HOST_NODE_TYPE, ("name", "type"))

    def insert_rows(self, count: int) -> bool:
        """Add ``count`` host interfaces with default settings."""
        for number, node in self._free_names("host", count):
            set_option = self.config_object.set_option
            set_option("name", f"Interface {number}", self.node_type, node)
            set_option("type", "User Mode", self.node_type, node)
            machine = _underscored(self.config_object.get_option("name") or "")
            label = _underscored(
                self.config_object.get_option(
                    "name", f"Interface_{number}", self.node_type, node
                )
            )
            set_option("interface", f"qtemu-{machine}-{label}", self.node_type, node)
            set_option("bridgeInterface", f"qtemu-{machine}-br{number}", self.node_type, node)
            defaults = {
                "hardwareInterface": "eth0",
                "spanningTree": False,
                "ifUp": "",
                "ifDown": "",
                "hostname": "qtemu_guest",
                "tftp": False,
                "tftpPath": "",
                "bootp": False,
                "bootpPath": "",
                "vlanType": "udp",
                "address": "127.0.0.1",
                "port": "9000",
            }
            for option, value in defaults.items():
                set_option(option, value, self.node_type, node)
        return True
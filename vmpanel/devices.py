"""Tracks USB and optical devices reported by the system's device manager."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Mapping, Optional

EVENTS = frozenset(
    {
        "device_added",
        "device_removed",
        "usb_added",
        "usb_removed",
        "optical_added",
        "optical_removed",
    }
)


@dataclass(frozen=True)
class UsbDevice:
    id: str
    vendor: str
    product: str
    address: str


@dataclass(frozen=True)
class OpticalDevice:
    device: str
    id: str
    name: str
    volume: str = ""
    volume_id: str = ""


def _text(properties: Mapping[str, Any], key: str) -> str:
    value = properties.get(key)
    return "" if value is None else str(value)


def _number(properties: Mapping[str, Any], key: str) -> int:
    try:
        return int(str(properties.get(key, 0)).strip())
    except ValueError:
        return 0


class DeviceRegistry:
    """Keeps the known USB devices and optical drives and reports changes.

    Callbacks receive, per event:
    ``device_added``/``device_removed``: the device name;
    ``usb_added``/``usb_removed``: the device name and its :class:`UsbDevice`;
    ``optical_added``/``optical_removed``: the display name and the block device.
    """

    def __init__(self) -> None:
        self._usb: dict[str, UsbDevice] = {}
        self._optical: dict[str, OpticalDevice] = {}
        self._callbacks: dict[str, list[Callable[..., None]]] = {event: [] for event in EVENTS}

    def subscribe(self, event: str, callback: Callable[..., None]) -> Callable[[], None]:
        """Call ``callback`` on ``event``; return a function that removes it."""
        if event not in EVENTS:
            raise ValueError(f"unknown device event {event!r}")
        callbacks = self._callbacks[event]
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._callbacks[event]):
            callback(*args)

    def device_added(
        self,
        name: str,
        properties: Optional[Mapping[str, Any]] = None,
        capabilities: Iterable[str] = (),
    ) -> None:
        """Record a device described by its properties and capabilities."""
        properties = properties or {}
        capabilities = set(capabilities)
        self._emit("device_added", name)

        if (
            _text(properties, "info.subsystem") == "usb_device"
            and _number(properties, "usb_device.num_ports") == 0
        ):
            device = UsbDevice(
                id=name,
                vendor=_text(properties, "info.vendor"),
                product=_text(properties, "info.product"),
                address=_text(properties, "usb_device.bus_number")
                + "."
                + _text(properties, "usb_device.linux.device_number"),
            )
            self._usb[name] = device
            self._emit("usb_added", name, device)
        elif "storage.cdrom" in capabilities:
            drive = OpticalDevice(
                device=_text(properties, "block.device"),
                id=name,
                name=_text(properties, "storage.model"),
            )
            self._optical[name] = drive
            self._emit("optical_added", drive.name, drive.device)
        elif "volume.disc" in capabilities:
            block = _text(properties, "block.device")
            drive = next((d for d in self._optical.values() if d.device == block), None)
            if drive is not None:
                drive = replace(
                    drive, volume=_text(properties, "volume.label"), volume_id=name
                )
                self._emit("optical_added", f"{drive.name} ({drive.volume})", drive.device)
                self._emit("optical_removed", drive.name, drive.device)
                self._optical[drive.id] = drive

    def device_removed(self, name: str) -> None:
        """Forget a device, or the disc inserted in a known drive."""
        self._emit("device_removed", name)

        usb = self._usb.pop(name, None)
        if usb is not None:
            self._emit("usb_removed", name, usb)

        drive = self._optical.pop(name, None)
        if drive is not None:
            self._emit("optical_removed", drive.name, drive.device)

        holder = next((d for d in self._optical.values() if d.volume_id == name), None)
        if holder is not None:
            self._emit("optical_added", holder.name, holder.device)
            self._emit("optical_removed", f"{holder.name} ({holder.volume})", holder.device)
            self._optical[holder.id] = replace(holder, volume="", volume_id="")

    def usb_list(self) -> list[UsbDevice]:
        return list(self._usb.values())

    def optical_list(self) -> list[OpticalDevice]:
        return list(self._optical.values())
"""Machine configuration, control bindings, disk images, devices and guest tool
messages for QEMU virtual machines."""

__version__ = "2.0a1"

__all__ = [
    "bindings",
    "config",
    "devices",
    "disks",
    "guesttools",
    "helpfiles",
    "interfaces",
    "machine",
    "settings",
    "toolbar",
]
"""State and helpers of the panel that controls one virtual machine."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import MutableSet

SNAPSHOT_LABEL = "Snapshot mode"
SNAPSHOT_COMMIT_HINT = "(uncheck to commit changes)"
RESUME_NOTICE = (
    "Your machine is being resumed. USB devices will not function properly on "
    "Windows. You must reload the USB driver to use your usb devices including "
    "the seamless mouse. In addition the advanced VGA adapter will not refresh "
    "initially on any OS."
)

_LAST_EXTENSION = re.compile(r"[.][^.]+$")


class ErrorKind(enum.Enum):
    """How an error reported by the emulator is to be handled."""

    IGNORED = "ignored"
    ALREADY_RUNNING = "already_running"
    SOUND = "sound"
    GENERAL = "general"


ERROR_TITLES = {
    ErrorKind.ALREADY_RUNNING: "QtEmu machine already running!",
    ErrorKind.SOUND: "QtEmu Sound Error",
    ErrorKind.GENERAL: "QtEmu Error",
}


def sibling_path(hdd: str, extension: str) -> str:
    """The disk image path with its last extension replaced by ``extension``.

    Paths without an extension are returned unchanged.
    """
    if not extension.startswith("."):
        extension = "." + extension
    return _LAST_EXTENSION.sub(lambda _match: extension, hdd, count=1)


def screendump_command(filename: str) -> bytes:
    """Monitor command that saves the guest screen to ``filename``."""
    return ("screendump " + filename).encode("ascii", errors="replace") + b"\n"


def classify_error(message: str, shown: MutableSet[str]) -> ErrorKind:
    """Decide how to report ``message``.

    ``shown`` holds the error categories already reported during this run;
    a sound error is reported in full only once and is added to it.
    """
    if "(VMDK)" in message:
        return ErrorKind.IGNORED
    if "bind()" in message:
        return ErrorKind.ALREADY_RUNNING
    if "audio" not in shown and "audio:" in message:
        shown.add("audio")
        return ErrorKind.SOUND
    return ErrorKind.GENERAL


@dataclass
class ButtonStates:
    """Which machine controls are enabled or visible, and the snapshot label."""

    start_enabled: bool = True
    stop_enabled: bool = False
    pause_enabled: bool = False
    suspend_visible: bool = False
    resume_visible: bool = True
    snapshot_label: str = SNAPSHOT_LABEL
    shown_errors: set[str] = field(default_factory=set)

    def booting(self, snapshot: bool) -> None:
        """The machine has started booting."""
        if snapshot:
            self.snapshot_label = self.snapshot_label + "\n" + SNAPSHOT_COMMIT_HINT
        self.pause_enabled = True
        self.suspend_visible = True
        self.resume_visible = False
        self.start_enabled = False
        self.stop_enabled = True

    def finished(self) -> None:
        """The machine has stopped."""
        self.stop_enabled = False
        self.start_enabled = True
        self.pause_enabled = False
        self.resume_visible = True
        self.suspend_visible = False
        self.snapshot_label = SNAPSHOT_LABEL
        self.shown_errors.clear()

    def resumed(self) -> str:
        """The machine was resumed from a saved state; return the notice to show."""
        self.start_enabled = False
        self.stop_enabled = True
        self.suspend_visible = True
        self.resume_visible = False
        return RESUME_NOTICE
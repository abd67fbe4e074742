"""Inspection and conversion of hard disk images with the qemu-img tool."""

from __future__ import annotations

import re
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

Runner = Callable[[Sequence[str]], "tuple[int, str]"]


class DiskImageError(Exception):
    """Raised when an image cannot be inspected or converted."""


@dataclass(frozen=True)
class ImageInfo:
    format: str
    upgradable: bool
    suspendable: bool
    resumable: bool
    virtual_size: int
    physical_size: int


NO_IMAGE = ImageInfo("none", False, False, False, 0, 0)


def _default_programs() -> tuple[str, ...]:
    if sys.platform.startswith("win"):
        return ("qemu/qemu-img.exe",)
    return ("qemu-img", "kvm-img")


def _run(args: Sequence[str]) -> tuple[int, str]:
    completed = subprocess.run(list(args), capture_output=True, text=True, check=False)
    return completed.returncode, completed.stdout


def _parse_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        return 0


def parse_image_info(output: str, physical_size: int = 0, snapshot: bool = False) -> ImageInfo:
    """Interpret the output of ``qemu-img info``."""
    lines = output.split("\n")
    if len(lines) < 3 or ":" not in lines[1]:
        raise DiskImageError("unexpected output from the image tool")
    image_format = " ".join(lines[1].split(":")[1].split())
    upgradable = image_format != "qcow2"
    suspendable = not upgradable and not snapshot

    _, _, size_part = lines[2].partition("(")
    virtual_size = _parse_int(size_part[:-6]) if size_part else 0

    resumable = False
    if len(lines) > 6:
        for line in lines[7:-1]:
            words = re.split(r"\W+", line)
            if len(words) > 1 and words[1] == "Default":
                resumable = True
    if snapshot:
        resumable = False

    return ImageInfo(
        format=image_format,
        upgradable=upgradable,
        suspendable=suspendable,
        resumable=resumable,
        virtual_size=virtual_size,
        physical_size=physical_size,
    )


class HardDiskManager:
    """Runs the image tool to describe an image and to convert it to qcow2."""

    def __init__(
        self,
        programs: Optional[Sequence[str]] = None,
        runner: Optional[Runner] = None,
    ) -> None:
        self.programs = tuple(programs) if programs else _default_programs()
        self.runner = runner or _run
        self.info: Optional[ImageInfo] = None
        self._suspendable = False

    def test_image(self, path: str | Path, snapshot: bool = False) -> ImageInfo:
        """Describe the image at ``path``; a missing file gives format ``none``."""
        image = Path(path)
        if not image.is_file():
            self.info = NO_IMAGE
            self._suspendable = False
            return self.info

        output: Optional[str] = None
        for program in self.programs:
            try:
                _, output = self.runner([program, "info", str(image)])
            except OSError:
                continue
            break
        if output is None:
            self._suspendable = False
            raise DiskImageError(
                "could not run " + " or ".join(self.programs)
                + "; disk image statistics are unavailable"
            )

        self.info = parse_image_info(output, image.stat().st_size, snapshot)
        self._suspendable = self.info.suspendable
        return self.info

    def upgrade_image(self, path: str | Path) -> Path:
        """Convert the image to qcow2 next to it and return the new path."""
        image = Path(path)
        target = image.parent / (image.stem + ".qcow")
        args = [self.programs[0], "convert", str(image), "-O", "qcow2", str(target)]
        try:
            status, _ = self.runner(args)
        except OSError as exc:
            raise DiskImageError(f"could not run {self.programs[0]}: {exc}") from exc
        if status != 0:
            raise DiskImageError(
                "upgrading the hard disk image failed; is there enough disk space?"
            )
        return target

    def is_suspendable(self) -> bool:
        return self._suspendable
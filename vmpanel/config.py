"""Per-machine configuration stored as a small XML document."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Callable, Optional

ROOT_TAG = "qtemu"
FORMAT_VERSION = "1.0"

Listener = Callable[[str, str, str, Any], None]


class ConfigError(Exception):
    """Raised when a configuration file cannot be read, parsed or written."""


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _child(parent: Optional[ET.Element], tag: Optional[str] = None) -> Optional[ET.Element]:
    """Return the first child element of ``parent`` (with ``tag`` if given)."""
    if parent is None:
        return None
    return next((child for child in parent if tag is None or child.tag == tag), None)


class MachineConfig:
    """Options of one virtual machine, grouped by node type and node name.

    Options live at ``<qtemu>/<node_type>/<option>`` or, when a node name is
    given, at ``<qtemu>/<node_type>/<node_name>/<option>``. Every change is
    written back to the file the configuration was loaded from.
    """

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self.path: Optional[Path] = None
        self._root = ET.Element(ROOT_TAG)
        self._listeners: list[Listener] = []
        if path:
            self.load(path)

    def load(self, path: str | Path) -> bool:
        """Load ``path``; return False when it could not be read and a fresh
        document was started instead."""
        self.path = Path(path)
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError:
            self._root = ET.Element(ROOT_TAG)
            return False
        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            line, column = exc.position
            raise ConfigError(
                f"parse error at line {line}, column {column}: {exc}"
            ) from exc
        if root.tag != ROOT_TAG:
            raise ConfigError(f"{self.path} is not a machine configuration file")
        version = root.get("version")
        if version is not None and version != FORMAT_VERSION:
            raise ConfigError(
                f"{self.path} is not a version {FORMAT_VERSION} configuration file"
            )
        self._root = root
        return True

    def save(self, path: Optional[str | Path] = None) -> None:
        """Write the document to ``path``, or to the file it was loaded from."""
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ConfigError("no file to save the configuration to")
        ET.indent(self._root, space="    ")
        data = ET.tostring(self._root, encoding="unicode") + "\n"
        try:
            target.write_text(data, encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"cannot write file {target}: {exc}") from exc

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Call ``callback(node_type, node_name, option_name, value)`` on every
        change; return a function that removes the subscription."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _lookup(self, node_type: str, node_name: str) -> Optional[ET.Element]:
        type_element = _child(self._root, node_type)
        if not node_name:
            return type_element
        return _child(type_element, node_name)

    def _listing_node(self, node_type: str, node_name: str) -> Optional[ET.Element]:
        if not node_name:
            return _child(self._root, node_type)
        type_element = _child(self._root, node_type)
        if node_name == "*":
            return _child(type_element)
        return _child(type_element, node_name)

    def _autosave(self) -> None:
        if self.path is not None:
            self.save()

    def set_option(self, node_type: str, node_name: str, option_name: str, value: Any) -> None:
        """Store ``value`` as text, creating missing nodes, and notify subscribers."""
        type_element = _child(self._root, node_type)
        if type_element is None:
            type_element = ET.SubElement(self._root, node_type)
        container = type_element
        if node_name:
            container = _child(type_element, node_name)
            if container is None:
                container = ET.SubElement(type_element, node_name)

        option = _child(container, option_name)
        if option is None:
            option = ET.SubElement(container, option_name)
        option.clear()
        option.text = _to_text(value)

        self._autosave()
        for listener in list(self._listeners):
            listener(node_type, node_name, option_name, value)

    def get_option(
        self,
        node_type: str,
        node_name: str,
        option_name: str,
        default: Any = None,
    ) -> Any:
        """Return the option's text; a missing option is stored as ``default``
        and ``default`` is returned."""
        option = _child(self._lookup(node_type, node_name), option_name)
        if option is None:
            self.set_option(node_type, node_name, option_name, default)
            return default
        return option.text or ""

    def clear_option(self, node_type: str, node_name: str, option_name: str) -> None:
        """Remove an option if it exists."""
        container = self._lookup(node_type, node_name)
        option = _child(container, option_name)
        if option is None:
            return
        container.remove(option)
        self._autosave()

    def option_names(self, node_type: str, node_name: str = "") -> list[str]:
        """Names of the child elements of a node; ``"*"`` picks the first named node."""
        container = self._listing_node(node_type, node_name)
        if container is None:
            return []
        return [child.tag for child in container]

    def option_count(self, node_type: str, node_name: str = "") -> int:
        """Number of child nodes of a node, text included."""
        container = self._listing_node(node_type, node_name)
        if container is None:
            return 0
        count = len(container)
        if container.text and container.text.strip():
            count += 1
        return count
"""Two-way binding between editable controls and machine configuration options."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from vmpanel.config import MachineConfig

VERSION = "2.0 Alpha1"

DEFAULT_NODE_TYPE = "machine"

_FALSE_WORDS = ("", "0", "false")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _same(left: Any, right: Any) -> bool:
    """Compare two option values the way they are stored: as text."""
    if left is None or right is None:
        return left is right
    return _as_text(left) == _as_text(right)


def _to_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_WORDS
    return bool(value)


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, (bool, int)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


class _Observable:
    def __init__(self) -> None:
        self._callbacks: list[Callable[..., None]] = []

    def subscribe(self, callback: Callable[..., None]) -> Callable[[], None]:
        """Register ``callback`` for user changes; return an unsubscribe function."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def _notify(self, *args: Any) -> None:
        for callback in list(self._callbacks):
            callback(*args)


class BoundWidget(_Observable, ABC):
    """A control whose state mirrors a single configuration option.

    ``apply`` sets the state from a stored value without notifying anyone;
    the user-facing setters of each subclass notify subscribers.
    """

    @abstractmethod
    def apply(self, value: Any) -> None:
        """Show ``value`` in the control."""

    @abstractmethod
    def current_value(self) -> Any:
        """The value to store for the control's state, or None for nothing."""


class ToggleWidget(BoundWidget):
    """A checkable button or action, optionally mapping its state to two values."""

    def __init__(
        self,
        checked: bool = False,
        value_if_true: Any = None,
        value_if_false: Any = None,
    ) -> None:
        super().__init__()
        self.checked = checked
        self.value_if_true = value_if_true
        self.value_if_false = value_if_false

    def set_checked(self, checked: bool) -> None:
        self.checked = checked
        self._notify()

    def apply(self, value: Any) -> None:
        if self.value_if_true is None:
            self.checked = _to_bool(value)
        else:
            self.checked = _same(self.value_if_true, value)

    def current_value(self) -> Any:
        if self.value_if_true is None:
            return self.checked
        return self.value_if_true if self.checked else self.value_if_false


class RadioWidget(BoundWidget):
    """A radio button that either stands for one value or acts as a boolean."""

    def __init__(self, value: Any = None, checked: bool = False) -> None:
        super().__init__()
        self.value = value
        self.checked = checked

    def set_checked(self, checked: bool) -> None:
        self.checked = checked
        self._notify()

    def apply(self, value: Any) -> None:
        if self.value is not None and _same(self.value, value):
            self.checked = True
        elif self.value is None:
            self.checked = _to_bool(value)

    def current_value(self) -> Any:
        if self.value is None:
            return self.checked
        if self.checked:
            return self.value
        return None


class ChoiceWidget(BoundWidget):
    """A combo box of ``(text, data)`` items, optionally with free text entry."""

    def __init__(
        self,
        items: Iterable[Union[str, tuple[str, Any]]] = (),
        editable: bool = False,
    ) -> None:
        super().__init__()
        self.items: list[tuple[str, Any]] = [
            (item, None) if isinstance(item, str) else (item[0], item[1]) for item in items
        ]
        self.editable = editable
        self.current_index = 0 if self.items else -1
        self.text = self.items[0][0] if self.items else ""

    @property
    def current_data(self) -> Any:
        if 0 <= self.current_index < len(self.items):
            return self.items[self.current_index][1]
        return None

    def find_data(self, value: Any) -> int:
        if value is None:
            return -1
        return next(
            (i for i, (_, data) in enumerate(self.items) if data is not None and _same(data, value)),
            -1,
        )

    def find_text(self, text: str) -> int:
        return next((i for i, (label, _) in enumerate(self.items) if label == text), -1)

    def _select(self, index: int) -> None:
        if not 0 <= index < len(self.items):
            raise IndexError(f"no item at index {index}")
        self.current_index = index
        self.text = self.items[index][0]

    def select(self, index: int) -> None:
        self._select(index)
        self._notify()

    def set_edit_text(self, text: str) -> None:
        if not self.editable:
            raise ValueError("this choice does not accept free text")
        self.text = text
        self._notify()

    def apply(self, value: Any) -> None:
        index = self.find_data(value)
        if index == -1:
            index = self.find_text(_as_text(value))
        if index != -1:
            if index != self.current_index or self.text != self.items[index][0]:
                self._select(index)
        elif self.text != _as_text(value) and not _same(self.current_data, value):
            if self.editable:
                self.text = _as_text(value)

    def current_value(self) -> Any:
        data = self.current_data
        return data if data is not None else self.text


class TextWidget(BoundWidget):
    """A single- or multi-line text field."""

    def __init__(self, text: str = "") -> None:
        super().__init__()
        self.text = text

    def set_text(self, text: str) -> None:
        self.text = text
        self._notify()

    def apply(self, value: Any) -> None:
        self.text = _as_text(value)

    def current_value(self) -> Any:
        return self.text


class ValueWidget(BoundWidget):
    """An integer control such as a spin box or slider."""

    def __init__(self, value: int = 0) -> None:
        super().__init__()
        self.value = value

    def set_value(self, value: int) -> None:
        self.value = int(value)
        self._notify()

    def apply(self, value: Any) -> None:
        self.value = _to_int(value)

    def current_value(self) -> Any:
        return self.value


class ButtonGroupWidget(BoundWidget):
    """An exclusive group of buttons given as ``(text, value)`` pairs.

    A button without a value stands for its text.
    """

    def __init__(self, buttons: Sequence[tuple[str, Any]], checked: Optional[int] = None) -> None:
        super().__init__()
        self.buttons = list(buttons)
        self.checked = checked

    def click(self, index: int) -> None:
        if not 0 <= index < len(self.buttons):
            raise IndexError(f"no button at index {index}")
        self.checked = index
        self._notify()

    def apply(self, value: Any) -> None:
        for index, (text, button_value) in enumerate(self.buttons):
            if button_value in (None, ""):
                matches = text == _as_text(value)
            else:
                matches = _same(button_value, value)
            if matches:
                self.checked = index

    def current_value(self) -> Any:
        if self.checked is None:
            return None
        text, button_value = self.buttons[self.checked]
        return text if button_value in (None, "") else button_value


class EnableWidget(BoundWidget):
    """A container that is enabled or disabled by a boolean option."""

    def __init__(self, enabled: bool = True) -> None:
        super().__init__()
        self.enabled = enabled

    def apply(self, value: Any) -> None:
        self.enabled = _to_bool(value)

    def current_value(self) -> Any:
        return None


class PropertyBag(_Observable):
    """An object with named properties; every ``set`` is reported to subscribers."""

    def __init__(self, **properties: Any) -> None:
        super().__init__()
        self._properties: dict[str, Any] = dict(properties)

    def set(self, name: str, value: Any) -> None:
        self._properties[name] = value
        self._notify(name, value)

    def get(self, name: str) -> Any:
        return self._properties.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._properties

    def as_dict(self) -> dict[str, Any]:
        return dict(self._properties)

    def _assign(self, name: str, value: Any) -> None:
        self._properties[name] = value

    def _discard(self, name: str) -> None:
        self._properties.pop(name, None)


Target = Union[BoundWidget, PropertyBag]


@dataclass
class _Binding:
    node_type: str
    node_name: str
    option_name: str
    unsubscribe: Callable[[], None]


class MachineConfigObject:
    """Keeps registered controls and a :class:`MachineConfig` in step."""

    def __init__(self, config: Optional[MachineConfig] = None) -> None:
        self.config = config if config is not None else MachineConfig()
        self._bindings: dict[Target, _Binding] = {}
        self.config.subscribe(self.config_changed)

    def get_option(
        self,
        option_name: str,
        default: Any = None,
        node_type: str = DEFAULT_NODE_TYPE,
        node_name: str = "",
    ) -> Any:
        return self.config.get_option(node_type, node_name, option_name, default)

    def set_option(
        self,
        option_name: str,
        value: Any,
        node_type: str = DEFAULT_NODE_TYPE,
        node_name: str = "",
    ) -> None:
        self.config.set_option(node_type, node_name, option_name, value)

    def register(
        self,
        target: Target,
        option_name: str = "",
        default: Any = None,
        node_type: str = DEFAULT_NODE_TYPE,
        node_name: str = "",
    ) -> None:
        """Bind ``target`` to an option, or a property bag to every option of a node."""
        if isinstance(target, PropertyBag):
            if not option_name:
                for name in self.config.option_names(node_type, node_name):
                    target._assign(name, self.config.get_option(node_type, node_name, name))
            else:
                self._refresh(target, node_type, node_name, option_name, default)

            def forward(name: str, value: Any) -> None:
                self.set_option(name, value, node_type, node_name)

            unsubscribe = target.subscribe(forward)
        elif isinstance(target, BoundWidget):
            if not option_name:
                raise ValueError("a control must be bound to a named option")
            self._refresh(target, node_type, node_name, option_name, default)
            unsubscribe = target.subscribe(lambda: self.widget_changed(target))
        else:
            raise TypeError(f"cannot bind an object of type {type(target).__name__}")

        previous = self._bindings.pop(target, None)
        if previous is not None:
            previous.unsubscribe()
        self._bindings[target] = _Binding(node_type, node_name, option_name, unsubscribe)

    def unregister(self, target: Target) -> None:
        """Stop keeping ``target`` in step; unknown targets are ignored."""
        binding = self._bindings.pop(target, None)
        if binding is None:
            return
        binding.unsubscribe()
        if isinstance(target, PropertyBag) and not binding.option_name:
            for name in self.config.option_names(binding.node_type, binding.node_name):
                target._discard(name)

    def widget_changed(self, target: Target) -> None:
        """Store the current value of a registered control in the configuration."""
        binding = self._bindings.get(target)
        if binding is None:
            raise KeyError("the control is not registered")
        if isinstance(target, PropertyBag):
            value = target.get(binding.option_name) if binding.option_name else None
        else:
            value = target.current_value()
        if value is not None:
            self.set_option(binding.option_name, value, binding.node_type, binding.node_name)

    def config_changed(self, node_type: str, node_name: str, option_name: str, value: Any) -> None:
        """Update every control bound to the option that changed."""
        for target, binding in list(self._bindings.items()):
            if (
                binding.node_type == node_type
                and (binding.node_name == node_name or not binding.node_name)
                and (not binding.option_name or binding.option_name == option_name)
            ):
                self._refresh(target, node_type, node_name, option_name, value)

    def _refresh(
        self,
        target: Target,
        node_type: str,
        node_name: str,
        option_name: str,
        default: Any,
    ) -> None:
        value = self.config.get_option(node_type, node_name, option_name, default)
        if isinstance(target, PropertyBag):
            if option_name not in target or not _same(target.get(option_name), value):
                target._assign(option_name, value)
        else:
            target.apply(value)
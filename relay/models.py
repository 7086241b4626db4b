"""
Data models exchanged with the relay server
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, FrozenSet, Iterable, Union


@dataclass(frozen=True)
class PanelDescriptor:
    """A panel definition as served by the relay"""
    name: str
    data: Any


@dataclass(frozen=True)
class DeviceRequest:
    """Resources a panel uses on one device"""
    buttons: int = 0
    axes: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class DeviceCapabilities:
    """What an acquired device actually offers"""
    num_buttons: int
    axes: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class DeviceAcquisitionResult:
    """Outcome of a single acquireDevice request"""
    device_id: int
    capabilities: Optional[DeviceCapabilities] = None
    reason: Optional[str] = None

    @property
    def is_acquired(self) -> bool:
        return self.capabilities is not None

    @classmethod
    def acquired(cls, device_id: int, num_buttons: int, axes: Iterable[str] = ()) -> 'DeviceAcquisitionResult':
        return cls(device_id, DeviceCapabilities(num_buttons, frozenset(axes)))

    @classmethod
    def failed(cls, device_id: int, reason: Optional[str] = None) -> 'DeviceAcquisitionResult':
        return cls(device_id, None, reason)

    @classmethod
    def from_dict(cls, device_id: int, data: Dict[str, Any]) -> 'DeviceAcquisitionResult':
        """
        Create a result from the relay's acquireDevice payload.

        The relay reports axes either as a list of ids or as a mapping of
        axis id to an enabled flag.
        """
        if not data.get("isAcquired", False):
            return cls.failed(device_id, data.get("message"))

        axes = data.get("axes") or {}
        if isinstance(axes, dict):
            enabled = [axis for axis, on in axes.items() if on]
        else:
            enabled = list(axes)

        return cls.acquired(device_id, int(data.get("numButtons", 0)), enabled)


class InputType(Enum):
    """Kinds of actions a control can emit"""
    MACRO = "macro"
    COMMAND = "command"
    VIEW = "view"


@dataclass
class InputAction:
    """A button or slider change coming from the panel surface"""
    type: Union[InputType, str]
    is_pressed: bool = False
    view: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the relay's sendInput format"""
        kind = self.type.value if isinstance(self.type, InputType) else self.type
        data = {"type": kind, "isPressed": self.is_pressed, **self.payload}
        if self.view is not None:
            data["view"] = self.view
        return data


@dataclass(frozen=True)
class SendResult:
    """Response to sendInput"""
    ok: bool
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SendResult':
        return cls(ok=bool(data.get("ok", False)), message=data.get("message"))


# Transport lifecycle events. Each carries the generation of the session
# that produced it so events from a replaced session can be ignored.

@dataclass(frozen=True)
class Reconnecting:
    session: int


@dataclass(frozen=True)
class Reconnected:
    session: int


@dataclass(frozen=True)
class ConnectionClosed:
    session: int
    reason: Optional[str] = None


LifecycleEvent = Union[Reconnecting, Reconnected, ConnectionClosed]

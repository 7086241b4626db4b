"""
Commands accepted by the PanelApp command loop
"""

from dataclasses import dataclass

from relay.models import InputAction


@dataclass(frozen=True)
class Submit:
    """Connect prompt submitted"""
    address: str
    port: int


@dataclass(frozen=True)
class Connect:
    address: str
    port: int


@dataclass(frozen=True)
class Disconnect:
    pass


@dataclass(frozen=True)
class CancelReconnect:
    pass


@dataclass(frozen=True)
class RefreshPanels:
    pass


@dataclass(frozen=True)
class LoadPanel:
    name: str


@dataclass(frozen=True)
class ClosePanel:
    pass


@dataclass(frozen=True)
class DismissNotification:
    pass


@dataclass(frozen=True)
class ButtonChange:
    action: InputAction


@dataclass(frozen=True)
class SliderChange:
    action: InputAction


@dataclass(frozen=True)
class KeyPress:
    code: str

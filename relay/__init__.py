"""
Relay server transport, wire models and error types
"""

from .client import RelayClient, RelaySession
from .assets import AssetChecker
from .models import (
    PanelDescriptor, DeviceRequest, DeviceCapabilities, DeviceAcquisitionResult,
    InputType, InputAction, SendResult, Reconnecting, Reconnected, ConnectionClosed
)

__all__ = [
    "RelayClient",
    "RelaySession",
    "AssetChecker",
    "PanelDescriptor",
    "DeviceRequest",
    "DeviceCapabilities",
    "DeviceAcquisitionResult",
    "InputType",
    "InputAction",
    "SendResult",
    "Reconnecting",
    "Reconnected",
    "ConnectionClosed"
]

"""
Error types raised by the relay transport and the panel container
"""

from typing import Optional, Dict, Any, List


class RelayError(Exception):
    """Base exception for all relay client errors"""
    kind = "relay"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def message_lines(self) -> List[str]:
        """Lines shown to the user when this error is reported"""
        return [self.message]


class TransportConnectError(RelayError):
    """Raised when the websocket session cannot be opened"""
    kind = "connect"

    def __init__(self, address: str, port: int, message: str):
        self.address = address
        self.port = port
        super().__init__(message, {"address": address, "port": port})


class ProtocolError(RelayError):
    """Raised when the relay sends something the client cannot understand"""
    kind = "protocol"


class PanelFetchError(RelayError):
    """Raised when a panel descriptor cannot be fetched"""
    kind = "fetch"


class PanelParseError(PanelFetchError):
    """The relay found the panel file but could not parse it"""
    kind = "parse"

    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(message, {"line": line, "column": column})

    def message_lines(self) -> List[str]:
        return [f"Error on line {self.line} at column {self.column}:", self.message]


class PanelNetworkError(PanelFetchError):
    """The request for the panel did not complete"""
    kind = "network"


class RequestTimeoutError(PanelNetworkError):
    """An RPC got no response within the transport timeout"""

    def __init__(self, request_type: str, timeout: float):
        self.request_type = request_type
        self.timeout = timeout
        super().__init__(f"Request {request_type} timed out after {timeout}s",
                         {"request_type": request_type, "timeout": timeout})


class NotConnectedError(PanelNetworkError):
    """An RPC was attempted without a live session"""

    def __init__(self, request_type: str):
        self.request_type = request_type
        super().__init__(f"Not connected to a server ({request_type})")


class PanelBuildError(RelayError):
    """Raised when a fetched descriptor cannot be turned into a panel"""
    kind = "plain"


class AssetError(PanelBuildError):
    """One or more assets referenced by the panel are unavailable"""
    kind = "asset"

    def __init__(self, message: str, errors: List[str]):
        self.errors = list(errors)
        super().__init__(message, {"errors": self.errors})

    def message_lines(self) -> List[str]:
        return [self.message] + self.errors


class DeviceAcquisitionError(RelayError):
    """A single device could not be acquired; never fatal"""
    kind = "device"

    def __init__(self, device_id: int, message: str):
        self.device_id = device_id
        super().__init__(message, {"device_id": device_id})


class InputSendError(RelayError):
    """An input action could not be delivered to the relay"""
    kind = "input"

    def message_lines(self) -> List[str]:
        return ["Error sending input.", self.message]

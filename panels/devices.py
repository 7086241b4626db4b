"""
Device acquisition and reconciliation against a panel's requirements
"""

import asyncio
from typing import Dict, List, Optional

from config import NOTIFICATION_TITLES
from core.logging_config import get_logger
from events import event_bus as default_event_bus, EventBus, EventTypes
from notifications import NotificationQueue
from relay.models import DeviceRequest, DeviceAcquisitionResult


def reconcile(requested: Dict[int, DeviceRequest],
              results: List[DeviceAcquisitionResult]) -> List[str]:
    """
    Compare acquired devices with what the panel uses.

    Args:
        requested: Resources per device id, as declared by the panel
        results: One acquisition result per requested device

    Returns:
        Warning lines, in result order
    """
    warnings = []
    for result in results:
        device_id = result.device_id
        if not result.is_acquired:
            warnings.append(f"Unable to acquire device {device_id}")
            continue

        request = requested.get(device_id)
        if request is None:
            continue

        capabilities = result.capabilities
        if request.buttons > capabilities.num_buttons:
            warnings.append(f"Device {device_id} has {capabilities.num_buttons} buttons "
                            f"but this panel uses {request.buttons}")

        for axis in sorted(request.axes):
            if axis not in capabilities.axes:
                warnings.append(f"Requested axis {axis} not enabled on device {device_id}")

    return warnings


class DeviceReconciler:
    """Acquires every device a panel uses and reports mismatches"""

    def __init__(self, client, notifications: NotificationQueue, bus: Optional[EventBus] = None):
        self.logger = get_logger(__name__)
        self.client = client
        self.notifications = notifications
        self.bus = bus or default_event_bus
        self.last_results: List[DeviceAcquisitionResult] = []
        self.last_warnings: List[str] = []

    async def acquire_devices(self, requested: Dict[int, DeviceRequest]) -> List[DeviceAcquisitionResult]:
        """
        Request every device concurrently and wait for all of them.

        A failing request never cancels the others; it becomes a failed
        result for its device.
        """
        device_ids = [int(device_id) for device_id in requested]
        outcomes = await asyncio.gather(
            *(self.client.acquire_device(device_id) for device_id in device_ids),
            return_exceptions=True
        )

        results = []
        for device_id, outcome in zip(device_ids, outcomes):
            if isinstance(outcome, DeviceAcquisitionResult):
                results.append(outcome)
            elif isinstance(outcome, BaseException):
                self.logger.warning(f"Acquiring device {device_id} failed: {outcome}")
                results.append(DeviceAcquisitionResult.failed(device_id, str(outcome)))
            else:
                self.logger.warning(f"Unexpected acquisition result for device {device_id}: {outcome!r}")
                results.append(DeviceAcquisitionResult.failed(device_id, "invalid response"))

        self.bus.emit(EventTypes.DEVICES_ACQUIRED, {
            "requested": device_ids,
            "acquired": [r.device_id for r in results if r.is_acquired]
        }, source="DeviceReconciler")
        return results

    async def run(self, requested: Dict[int, DeviceRequest]) -> List[str]:
        """Full acquisition round followed by one notification if anything is off"""
        results = await self.acquire_devices(requested)
        warnings = reconcile(requested, results)

        self.last_results = results
        self.last_warnings = warnings

        if warnings:
            self.bus.emit(EventTypes.DEVICE_WARNINGS, {"warnings": warnings}, source="DeviceReconciler")
            self.notifications.show(NOTIFICATION_TITLES["device_info"], warnings)
        return warnings

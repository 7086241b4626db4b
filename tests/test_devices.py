"""
Device acquisition and reconciliation
"""

import pytest

from panels.devices import DeviceReconciler, reconcile
from relay.errors import DeviceAcquisitionError
from relay.models import DeviceRequest, DeviceAcquisitionResult
from events import EventTypes


@pytest.fixture
def reconciler(client, app, bus):
    return DeviceReconciler(client, app.notifications, bus)


def test_reconcile_reports_buttons_and_axes():
    requested = {3: DeviceRequest(buttons=4, axes=frozenset({"x"}))}
    results = [DeviceAcquisitionResult.from_dict(3, {"isAcquired": True, "numButtons": 2, "axes": {}})]

    assert reconcile(requested, results) == [
        "Device 3 has 2 buttons but this panel uses 4",
        "Requested axis x not enabled on device 3",
    ]


def test_reconcile_silent_when_capabilities_suffice():
    requested = {1: DeviceRequest(buttons=2, axes=frozenset({"x", "y"}))}
    results = [DeviceAcquisitionResult.acquired(1, 8, ["x", "y", "z"])]

    assert reconcile(requested, results) == []


def test_reconcile_failed_device_gets_single_warning():
    requested = {2: DeviceRequest(buttons=4, axes=frozenset({"x"}))}
    results = [DeviceAcquisitionResult.failed(2, "busy")]

    assert reconcile(requested, results) == ["Unable to acquire device 2"]


async def test_failure_does_not_cancel_slow_success(reconciler, client):
    client.devices[1] = DeviceAcquisitionResult.acquired(1, 4)
    client.device_delays[1] = 0.05
    client.devices[2] = DeviceAcquisitionError(2, "No such device")

    results = await reconciler.acquire_devices({1: DeviceRequest(2), 2: DeviceRequest(1)})

    assert [r.device_id for r in results] == [1, 2]
    assert results[0].is_acquired
    assert not results[1].is_acquired
    assert results[1].reason == "No such device"


async def test_run_shows_one_notification(reconciler, client, app, events_of):
    client.devices[1] = DeviceAcquisitionResult.acquired(1, 1)
    client.devices[2] = DeviceAcquisitionError(2, "busy")

    warnings = await reconciler.run({1: DeviceRequest(3), 2: DeviceRequest(1)})

    assert warnings == ["Device 1 has 1 buttons but this panel uses 3", "Unable to acquire device 2"]
    assert app.notifications.shown_count == 1
    assert app.notifications.current.title == "Device info"
    assert app.notifications.current.lines == warnings
    assert not app.notifications.current.resume_connect
    assert events_of(EventTypes.DEVICES_ACQUIRED) == [{"requested": [1, 2], "acquired": [1]}]


async def test_run_without_warnings_is_silent(reconciler, client, app):
    client.devices[1] = DeviceAcquisitionResult.acquired(1, 4, ["x"])

    assert await reconciler.run({1: DeviceRequest(2, frozenset({"x"}))}) == []
    assert app.notifications.current is None
    assert reconciler.last_results[0].is_acquired

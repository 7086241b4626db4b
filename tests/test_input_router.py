"""
Routing of control events to the relay
"""

from conftest import panel_data, settle
from core.commands import ButtonChange, SliderChange, KeyPress
from events import EventTypes
from relay.errors import InputSendError
from relay.models import InputAction, InputType, SendResult


async def test_macro_sent_on_release_only(running_app, client):
    await running_app.call(ButtonChange(InputAction(InputType.MACRO, is_pressed=True)))
    assert client.sent == []

    await running_app.call(ButtonChange(InputAction(InputType.MACRO, is_pressed=False, payload={"id": 7})))
    assert [a.to_dict() for a in client.sent] == [{"type": "macro", "isPressed": False, "id": 7}]


async def test_view_switch_stays_local(running_app, client, events_of):
    client.panels["deck"] = {"views": [{"id": "main"}, {"id": "lights"}]}
    await running_app.loader.load_panel("deck")

    await running_app.call(ButtonChange(InputAction(InputType.VIEW, is_pressed=False, view="lights")))

    assert client.sent == []
    assert running_app.container.current_view == "lights"
    assert events_of(EventTypes.PANEL_VIEW_CHANGED) == [{"panel": "deck", "view": "lights"}]


async def test_slider_always_sent(running_app, client):
    await running_app.call(SliderChange(InputAction("axis", is_pressed=True, payload={"value": 0.5})))
    assert len(client.sent) == 1


async def test_rejected_input_reported(running_app, client):
    client.send_result = SendResult(ok=False, message="Device busy")

    await running_app.call(ButtonChange(InputAction(InputType.COMMAND)))

    notification = running_app.notifications.current
    assert notification.title == "Input error"
    assert notification.lines == ["Error sending input.", "Device busy"]


async def test_send_failure_reported(running_app, client, events_of):
    client.send_error = InputSendError("Not connected to a server (sendInput)")

    assert not await running_app.input_router.send_input(InputAction(InputType.COMMAND))

    assert running_app.notifications.current.lines == ["Error sending input.", "Not connected to a server (sendInput)"]
    assert len(events_of(EventTypes.INPUT_ERROR)) == 1


async def test_escape_closes_panel(running_app, client):
    client.panels["deck"] = panel_data()
    await running_app.loader.load_panel("deck")

    await running_app.call(KeyPress("Enter"))
    assert running_app.loader.current_panel == "deck"

    running_app.post(KeyPress("Escape"))
    await settle(running_app)
    assert running_app.loader.current_panel is None

"""
NotificationQueue replacement and deferred connect prompt
"""

from events import EventTypes
from notifications import NotificationQueue, Prompts


def make_queue(bus):
    return NotificationQueue(Prompts(), bus)


def test_show_drops_missing_lines(bus):
    queue = make_queue(bus)
    notification = queue.show("Connection error", ["Server connection lost.", None])

    assert notification.lines == ["Server connection lost."]
    assert queue.visible


def test_second_show_replaces_first(bus):
    queue = make_queue(bus)
    queue.show("Device info", ["Unable to acquire device 1"])
    queue.show("Input error", ["Error sending input.", "busy"])

    assert queue.current.title == "Input error"
    assert queue.replaced_count == 1
    assert queue.shown_count == 2


def test_replacement_keeps_resume_request(bus):
    queue = make_queue(bus)
    queue.show("Connection error", ["Server connection lost."], resume_connect=True)
    queue.show("Device info", ["Unable to acquire device 1"])

    assert queue.current.resume_connect

    queue.dismiss()
    assert queue.prompts.connect


def test_dismiss_without_resume_leaves_prompt_closed(bus, events_of):
    queue = make_queue(bus)
    queue.show("Device info", ["Unable to acquire device 1"])

    dismissed = queue.dismiss()

    assert dismissed.title == "Device info"
    assert not queue.visible
    assert not queue.prompts.connect
    assert len(events_of(EventTypes.NOTIFICATION_DISMISSED)) == 1


def test_dismiss_when_empty(bus):
    assert make_queue(bus).dismiss() is None


def test_set_prompt_publishes_state(bus, events_of):
    queue = make_queue(bus)
    queue.set_prompt(reconnecting=True)

    assert events_of(EventTypes.PROMPT_CHANGED) == [{"connect": False, "reconnecting": True}]

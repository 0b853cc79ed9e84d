import os
import shutil
import socket
import tempfile
import threading

import pytest

from winland.notifications import (
    DBUS_SOCKET_PATH,
    LinuxNotification,
    NotificationBridge,
    NotificationError,
    NotificationPriority,
    parse_message,
)


@pytest.fixture
def bridge():
    b = NotificationBridge()
    b.init()
    yield b
    b.terminate()


def test_parse_full_message():
    n = parse_message("Mail|New message|Hello there|mail-icon|2")
    assert (n.app_name, n.title, n.body, n.icon_name) == (
        "Mail",
        "New message",
        "Hello there",
        "mail-icon",
    )
    assert n.priority == NotificationPriority.HIGH


def test_parse_skips_empty_fields():
    n = parse_message("App||Body")
    assert n.app_name == "App"
    assert n.title == "Body"
    assert n.body == ""


def test_parse_priority_like_atoi():
    assert parse_message("a|b|c|d|3xyz").priority == NotificationPriority.URGENT
    assert parse_message("a|b|c|d|zzz").priority == NotificationPriority.LOW


def test_parse_bytes_and_truncation():
    n = parse_message(("A" * 400 + "|T").encode())
    assert len(n.app_name) == 255
    assert n.title == "T"


def test_parse_extra_fields_ignored():
    n = parse_message("a|b|c|d|1|extra")
    assert n.priority == NotificationPriority.NORMAL
    assert n.icon_name == "d"


def test_add_assigns_increasing_ids(bridge):
    first = bridge.add(LinuxNotification(title="one"))
    second = bridge.add(LinuxNotification(title="two"))
    assert second == first + 1
    assert bridge.get(first).title == "one"
    assert bridge.notification_count == 2


def test_add_stores_copy(bridge):
    n = LinuxNotification(title="orig")
    nid = bridge.add(n)
    assert n.id == nid
    n.title = "changed"
    assert bridge.get(nid).title == "orig"


def test_add_evicts_oldest_when_full():
    b = NotificationBridge(capacity=2)
    b.init()
    a = b.add(LinuxNotification(title="a"))
    c = b.add(LinuxNotification(title="b"))
    d = b.add(LinuxNotification(title="c"))
    assert b.get(a) is None
    assert b.get(c).title == "b"
    assert b.get(d).title == "c"
    assert b.notification_count == 2


def test_remove_and_get_zero(bridge):
    nid = bridge.add(LinuxNotification(title="x"))
    bridge.remove(nid)
    assert bridge.get(nid) is None
    assert bridge.get(0) is None
    assert bridge.notification_count == 0


def test_clear_all_withdraws_posted(bridge):
    ids = [bridge.add(LinuxNotification(title=str(i))) for i in range(3)]
    for nid in ids:
        bridge.send_to_android(bridge.get(nid))
    assert set(bridge.posted) == set(ids)
    bridge.clear_all()
    assert bridge.posted == {}
    assert bridge.notification_count == 0


def test_update_progress(bridge):
    nid = bridge.add(LinuxNotification(title="dl"))
    bridge.update_progress(nid, 42)
    stored = bridge.get(nid)
    assert stored.progress == 42
    assert stored.has_progress is True


def test_trigger_action_calls_callback(bridge):
    calls = []
    bridge.set_callbacks(None, lambda nid, action: calls.append((nid, action)))
    nid = bridge.add(LinuxNotification(actions=["open", "dismiss"]))
    bridge.trigger_action(nid, 1)
    bridge.trigger_action(nid, 2)
    bridge.trigger_action(nid, -1)
    assert calls == [(nid, "dismiss")]


def test_handle_message_invokes_callback(bridge):
    seen = []
    bridge.set_callbacks(seen.append, None)
    nid = bridge.handle_message("Chat|Hi|Body")
    assert [n.id for n in seen] == [nid]
    assert seen[0].app_name == "Chat"


def test_add_requires_init():
    b = NotificationBridge()
    with pytest.raises(NotificationError):
        b.add(LinuxNotification())


def test_terminate_drops_notifications():
    b = NotificationBridge()
    b.init()
    nid = b.add(LinuxNotification(title="t"))
    b.terminate()
    assert b.initialized is False
    assert b.get(nid) is None


def test_default_socket_path():
    assert NotificationBridge().socket_path == DBUS_SOCKET_PATH


def test_listener_receives_message():
    directory = tempfile.mkdtemp()
    path = os.path.join(directory, "dbus", "n.sock")
    b = NotificationBridge(socket_path=path)
    b.init()
    received = []
    done = threading.Event()

    def on_notification(n):
        received.append(n)
        done.set()

    b.set_callbacks(on_notification, None)
    try:
        b.start_listener()
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as client:
            client.connect(path)
            client.sendall(b"Term|Build done|All good|term|1")
        assert done.wait(5)
        assert received[0].title == "Build done"
        assert received[0].priority == NotificationPriority.NORMAL
    finally:
        b.terminate()
        shutil.rmtree(directory, ignore_errors=True)
    assert b.listening is False
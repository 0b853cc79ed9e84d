"""Bridge that carries desktop notifications from Linux clients to Android."""

from __future__ import annotations

import dataclasses
import enum
import logging
import os
import socket
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

MAX_NOTIFICATIONS = 100
DBUS_SOCKET_PATH = "/data/data/com.winland.server/files/dbus/notification"
MAX_ACTIONS = 8

_APP_NAME_LEN = 255
_TITLE_LEN = 511
_BODY_LEN = 2047
_ICON_NAME_LEN = 255
_RECV_SIZE = 4095
_ACCEPT_TIMEOUT = 0.1
_LISTEN_BACKLOG = 5


class NotificationError(Exception):
    """Raised when a notification operation cannot be carried out."""


class NotificationPriority(enum.IntEnum):
    LOW = 0
    NORMAL = 1
    HIGH = 2
    URGENT = 3


@dataclass
class LinuxNotification:
    """A notification as sent by a Linux application."""

    app_name: str = ""
    title: str = ""
    body: str = ""
    icon_name: str = ""
    priority: Union[NotificationPriority, int] = NotificationPriority.LOW
    timeout: int = 0
    actions: list[str] = field(default_factory=list)
    progress: int = 0
    has_progress: bool = False
    id: int = 0

    @property
    def action_count(self) -> int:
        return len(self.actions)


NotificationCallback = Callable[[LinuxNotification], None]
ActionCallback = Callable[[int, str], None]


def _atoi(text: str) -> int:
    """Parse a leading integer the way the C library's atoi does."""
    stripped = text.lstrip(" \t\n\r\v\f")
    sign = 1
    if stripped[:1] in ("+", "-"):
        sign = -1 if stripped[0] == "-" else 1
        stripped = stripped[1:]
    digits = ""
    for ch in stripped:
        if not ch.isdigit() or not ch.isascii():
            break
        digits += ch
    return sign * int(digits) if digits else 0


def _priority(value: int) -> Union[NotificationPriority, int]:
    try:
        return NotificationPriority(value)
    except ValueError:
        return value


def parse_message(data: Union[str, bytes]) -> LinuxNotification:
    """Parse ``APP_NAME|TITLE|BODY|ICON|PRIORITY``; empty fields are skipped."""
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8", errors="replace")
    data = data.split("\0", 1)[0]
    tokens = [token for token in data.split("|") if token][:5]
    notification = LinuxNotification()
    setters = (
        lambda t: setattr(notification, "app_name", t[:_APP_NAME_LEN]),
        lambda t: setattr(notification, "title", t[:_TITLE_LEN]),
        lambda t: setattr(notification, "body", t[:_BODY_LEN]),
        lambda t: setattr(notification, "icon_name", t[:_ICON_NAME_LEN]),
        lambda t: setattr(notification, "priority", _priority(_atoi(t))),
    )
    for setter, token in zip(setters, tokens):
        setter(token)
    return notification


class NotificationBridge:
    """Keeps active notifications and listens for new ones on a Unix socket."""

    def __init__(
        self,
        socket_path: str = DBUS_SOCKET_PATH,
        capacity: int = MAX_NOTIFICATIONS,
    ) -> None:
        self.initialized = False
        self.socket_path = socket_path
        self.capacity = capacity
        self._slots: list[Optional[LinuxNotification]] = []
        self._next_id = 1
        self._lock = threading.RLock()
        self._socket: Optional[socket.socket] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.posted: dict[int, LinuxNotification] = {}
        self.on_linux_notification: Optional[NotificationCallback] = None
        self.on_android_action: Optional[ActionCallback] = None

    def init(self) -> None:
        if self.initialized:
            return
        with self._lock:
            self._slots = [None] * self.capacity
            self.posted = {}
        self.on_linux_notification = None
        self.on_android_action = None
        self.initialized = True
        logger.info("Notification bridge initialized")

    def terminate(self) -> None:
        if not self.initialized:
            return
        self.stop_listener()
        with self._lock:
            self._slots = []
            self.initialized = False
        logger.info("Notification bridge terminated")

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise NotificationError("notification bridge is not initialized")

    @property
    def notification_count(self) -> int:
        with self._lock:
            return sum(1 for slot in self._slots if slot is not None)

    @property
    def listening(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start_listener(self) -> None:
        """Bind the Unix socket and start accepting messages in a thread."""
        self._require_initialized()
        if self.listening:
            return
        parent = os.path.dirname(self.socket_path)
        if parent:
            try:
                os.mkdir(parent, 0o755)
            except OSError:
                pass
        try:
            os.unlink(self.socket_path)
        except OSError:
            pass
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(self.socket_path)
            sock.listen(_LISTEN_BACKLOG)
            sock.settimeout(_ACCEPT_TIMEOUT)
        except OSError as exc:
            sock.close()
            logger.error("Failed to set up socket: %s", exc)
            raise NotificationError(f"failed to listen on {self.socket_path}: {exc}") from exc
        self._socket = sock
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._listen,
            args=(sock, self._stop_event),
            name="notification-listener",
            daemon=True,
        )
        self._thread.start()
        logger.info("D-Bus listener started on %s", self.socket_path)

    def stop_listener(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None
        if self._socket is not None:
            self._socket.close()
            self._socket = None
        logger.info("D-Bus listener stopped")

    def _listen(self, sock: socket.socket, stop: threading.Event) -> None:
        logger.info("D-Bus listener thread started")
        while not stop.is_set():
            try:
                client, _ = sock.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if stop.is_set():
                    break
                logger.error("Failed to accept connection: %s", exc)
                break
            with client:
                client.settimeout(None)
                try:
                    payload = client.recv(_RECV_SIZE)
                except OSError as exc:
                    logger.error("Failed to read message: %s", exc)
                    continue
            if payload:
                try:
                    self.handle_message(payload)
                except NotificationError as exc:
                    logger.error("Dropped message: %s", exc)
        logger.info("D-Bus listener thread stopped")

    def handle_message(self, data: Union[str, bytes]) -> int:
        """Parse a message, store the notification and return its id."""
        notification = parse_message(data)
        notification_id = self.add(notification)
        logger.info(
            "Notification added: %s - %s (ID: %d)",
            notification.app_name,
            notification.title,
            notification_id,
        )
        if self.on_linux_notification is not None:
            stored = self.get(notification_id)
            if stored is not None:
                self.on_linux_notification(stored)
        return notification_id

    def add(self, notification: LinuxNotification) -> int:
        """Store a copy of the notification, evicting the oldest if full."""
        self._require_initialized()
        if notification is None:
            raise NotificationError("notification is required")
        with self._lock:
            slot = next(
                (i for i, stored in enumerate(self._slots) if stored is None), None
            )
            if slot is None:
                slot = min(range(len(self._slots)), key=lambda i: self._slots[i].id)
            notification_id = self._next_id
            self._next_id += 1
            notification.id = notification_id
            self._slots[slot] = dataclasses.replace(
                notification, actions=list(notification.actions)
            )
        return notification_id

    def remove(self, notification_id: int) -> None:
        if notification_id == 0:
            return
        with self._lock:
            for i, stored in enumerate(self._slots):
                if stored is not None and stored.id == notification_id:
                    self._slots[i] = None
                    break
        self.close_on_android(notification_id)

    def get(self, notification_id: int) -> Optional[LinuxNotification]:
        """Return the stored notification with this id, or None."""
        if notification_id == 0:
            return None
        with self._lock:
            return next(
                (s for s in self._slots if s is not None and s.id == notification_id),
                None,
            )

    def clear_all(self) -> None:
        with self._lock:
            for stored in self._slots:
                if stored is not None:
                    self.close_on_android(stored.id)
            self._slots = [None] * len(self._slots)
        logger.info("All notifications cleared")

    def send_to_android(self, notification: LinuxNotification) -> None:
        """Post the notification on the Android side."""
        if notification is None:
            return
        logger.info(
            "Sending notification to Android: %s - %s",
            notification.app_name,
            notification.title,
        )
        with self._lock:
            self.posted[notification.id] = notification

    def close_on_android(self, notification_id: int) -> None:
        """Withdraw a posted notification on the Android side."""
        logger.info("Closing notification on Android: %d", notification_id)
        with self._lock:
            self.posted.pop(notification_id, None)

    def update_progress(self, notification_id: int, progress: int) -> None:
        notification = self.get(notification_id)
        if notification is None:
            return
        notification.progress = progress
        notification.has_progress = True
        logger.info("Updating notification progress: %d = %d%%", notification_id, progress)
        with self._lock:
            if notification_id in self.posted:
                self.posted[notification_id] = notification

    def trigger_action(self, notification_id: int, action_index: int) -> None:
        notification = self.get(notification_id)
        if notification is None or not 0 <= action_index < notification.action_count:
            return
        action = notification.actions[action_index]
        logger.info("Triggering action: %s", action)
        if self.on_android_action is not None:
            self.on_android_action(notification_id, action)

    def set_callbacks(
        self,
        on_linux_notification: Optional[NotificationCallback],
        on_android_action: Optional[ActionCallback],
    ) -> None:
        self.on_linux_notification = on_linux_notification
        self.on_android_action = on_android_action
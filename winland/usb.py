"""Redirection of USB devices from the host to Wayland clients."""

from __future__ import annotations

import dataclasses
import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MAX_USB_DEVICES = 32
USB_BUFFER_SIZE = 65536
SOCKET_PATH = "/data/data/com.winland.server/usb_redirect.sock"
_POLL_INTERVAL = 0.1


class UsbError(Exception):
    """Raised when a USB redirection operation fails."""


class UsbDeviceType(enum.IntEnum):
    UNKNOWN = 0
    STORAGE = 1
    HID = 2
    PRINTER = 3
    AUDIO = 4
    VIDEO = 5
    SERIAL = 6
    NETWORK = 7
    OTHER = 8


class UsbDeviceState(enum.IntEnum):
    DISCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2
    ERROR = 3


_CLASS_TO_TYPE = {
    0x00: UsbDeviceType.UNKNOWN,   # defined per interface
    0x01: UsbDeviceType.AUDIO,
    0x02: UsbDeviceType.NETWORK,   # communications
    0x03: UsbDeviceType.HID,
    0x05: UsbDeviceType.OTHER,     # physical
    0x06: UsbDeviceType.OTHER,     # image
    0x07: UsbDeviceType.PRINTER,
    0x08: UsbDeviceType.STORAGE,
    0x09: UsbDeviceType.HID,       # hub
    0x0A: UsbDeviceType.OTHER,     # CDC data
    0x0B: UsbDeviceType.OTHER,     # smart card
    0x0D: UsbDeviceType.OTHER,     # content security
    0x0E: UsbDeviceType.VIDEO,
    0x0F: UsbDeviceType.OTHER,     # personal healthcare
    0x10: UsbDeviceType.AUDIO,     # audio/video
    0x11: UsbDeviceType.OTHER,     # billboard
    0x12: UsbDeviceType.OTHER,     # type-C bridge
    0xDC: UsbDeviceType.OTHER,     # diagnostic
    0xE0: UsbDeviceType.OTHER,     # wireless controller
    0xEF: UsbDeviceType.OTHER,     # miscellaneous
    0xFE: UsbDeviceType.OTHER,     # application specific
    0xFF: UsbDeviceType.OTHER,     # vendor specific
}


def device_type_for_class(device_class: int) -> UsbDeviceType:
    """Map a USB device class code to a device type."""
    return _CLASS_TO_TYPE.get(device_class, UsbDeviceType.UNKNOWN)


@dataclass
class UsbDeviceInfo:
    vendor_id: int
    product_id: int
    bcd_device: int = 0
    device_class: int = 0
    device_subclass: int = 0
    device_protocol: int = 0
    manufacturer: str = ""
    product: str = ""
    serial: str = ""
    type: UsbDeviceType = UsbDeviceType.UNKNOWN
    state: UsbDeviceState = UsbDeviceState.DISCONNECTED

    @property
    def ident(self) -> str:
        return f"{self.vendor_id:04X}:{self.product_id:04X}"


DeviceCallback = Callable[[UsbDeviceInfo], None]
DataCallback = Callable[[bytes], None]


class UsbRedirect:
    """Keeps the list of redirected devices and runs the transfer thread."""

    def __init__(self) -> None:
        self.initialized = False
        self.running = False
        self.capacity = MAX_USB_DEVICES
        self.socket_path = ""
        self._devices: list[UsbDeviceInfo] = []
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.on_device_connected: Optional[DeviceCallback] = None
        self.on_device_disconnected: Optional[DeviceCallback] = None
        self.on_data_received: Optional[DataCallback] = None

    def init(self) -> None:
        if self.initialized:
            logger.info("USB redirect already initialized")
            return
        self._devices = []
        self.running = False
        self.on_device_connected = None
        self.on_device_disconnected = None
        self.on_data_received = None
        self.socket_path = SOCKET_PATH
        self.initialized = True
        logger.info("USB redirect initialized")

    def terminate(self) -> None:
        if not self.initialized:
            return
        self.stop()
        with self._lock:
            self._devices = []
        self.initialized = False
        logger.info("USB redirect terminated")

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise UsbError("USB redirect is not initialized")

    def _poll(self) -> None:
        logger.info("USB redirect thread started")
        while not self._stop_event.wait(_POLL_INTERVAL):
            pass
        logger.info("USB redirect thread stopped")

    def start(self) -> None:
        """Start the background transfer thread."""
        self._require_initialized()
        if self.running:
            logger.info("USB redirect already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll, name="usb-redirect", daemon=True)
        self.running = True
        self._thread.start()
        logger.info("USB redirect started")

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        logger.info("USB redirect stopped")

    def _index_of(self, vendor_id: int, product_id: int) -> Optional[int]:
        return next(
            (
                i
                for i, dev in enumerate(self._devices)
                if dev.vendor_id == vendor_id and dev.product_id == product_id
            ),
            None,
        )

    def add_device(self, device: UsbDeviceInfo) -> bool:
        """Register a device; returns False if it was already present."""
        self._require_initialized()
        if device is None:
            raise UsbError("device is required")
        with self._lock:
            if len(self._devices) >= self.capacity:
                logger.error("Device list full")
                raise UsbError("device list full")
            if self._index_of(device.vendor_id, device.product_id) is not None:
                logger.info("Device already exists")
                return False
            stored = dataclasses.replace(
                device,
                type=device_type_for_class(device.device_class),
                state=UsbDeviceState.DISCONNECTED,
            )
            self._devices.append(stored)
            logger.info("Device added: %s (%s)", stored.ident, stored.product)
            if self.on_device_connected is not None:
                self.on_device_connected(stored)
        return True

    def remove_device(self, vendor_id: int, product_id: int) -> None:
        self._require_initialized()
        with self._lock:
            index = self._index_of(vendor_id, product_id)
            if index is None:
                raise UsbError(f"device not found: {vendor_id:04X}:{product_id:04X}")
            if self.on_device_disconnected is not None:
                self.on_device_disconnected(self._devices[index])
            del self._devices[index]
        logger.info("Device removed: %04X:%04X", vendor_id, product_id)

    def find_device(self, vendor_id: int, product_id: int) -> Optional[UsbDeviceInfo]:
        if not self.initialized:
            return None
        with self._lock:
            index = self._index_of(vendor_id, product_id)
            return None if index is None else self._devices[index]

    def devices(self) -> list[UsbDeviceInfo]:
        """Return copies of all registered devices."""
        self._require_initialized()
        with self._lock:
            return [dataclasses.replace(dev) for dev in self._devices]

    def send_data(self, vendor_id: int, product_id: int, data: bytes) -> None:
        self._require_initialized()
        if not data:
            raise UsbError("no data to send")
        logger.info("Sending %d bytes to device %04X:%04X", len(data), vendor_id, product_id)

    def receive_data(self, vendor_id: int, product_id: int, max_size: int) -> bytes:
        """Return bytes waiting from the device (at most ``max_size``)."""
        self._require_initialized()
        return b""

    def _require_device(self, vendor_id: int, product_id: int) -> UsbDeviceInfo:
        device = self.find_device(vendor_id, product_id)
        if device is None:
            logger.error("Device not found: %04X:%04X", vendor_id, product_id)
            raise UsbError(f"device not found: {vendor_id:04X}:{product_id:04X}")
        return device

    def connect_device(self, vendor_id: int, product_id: int) -> None:
        device = self._require_device(vendor_id, product_id)
        if device.state == UsbDeviceState.CONNECTED:
            logger.info("Device already connected")
            return
        device.state = UsbDeviceState.CONNECTING
        device.state = UsbDeviceState.CONNECTED
        logger.info("Device connected: %s", device.ident)

    def disconnect_device(self, vendor_id: int, product_id: int) -> None:
        device = self._require_device(vendor_id, product_id)
        if device.state != UsbDeviceState.CONNECTED:
            logger.info("Device not connected")
            return
        device.state = UsbDeviceState.DISCONNECTED
        logger.info("Device disconnected: %s", device.ident)

    def reset_device(self, vendor_id: int, product_id: int) -> None:
        device = self._require_device(vendor_id, product_id)
        logger.info("Resetting device: %s", device.ident)

    def set_callbacks(
        self,
        on_device_connected: Optional[DeviceCallback],
        on_device_disconnected: Optional[DeviceCallback],
        on_data_received: Optional[DataCallback],
    ) -> None:
        self.on_device_connected = on_device_connected
        self.on_device_disconnected = on_device_disconnected
        self.on_data_received = on_data_received
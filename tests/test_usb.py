import pytest

from winland.usb import (
    MAX_USB_DEVICES,
    UsbDeviceInfo,
    UsbDeviceState,
    UsbDeviceType,
    UsbError,
    UsbRedirect,
    device_type_for_class,
)


@pytest.fixture
def usb():
    redirect = UsbRedirect()
    redirect.init()
    yield redirect
    redirect.terminate()


@pytest.mark.parametrize(
    "cls, expected",
    [
        (0x08, UsbDeviceType.STORAGE),
        (0x03, UsbDeviceType.HID),
        (0x09, UsbDeviceType.HID),
        (0x0E, UsbDeviceType.VIDEO),
        (0x10, UsbDeviceType.AUDIO),
        (0x02, UsbDeviceType.NETWORK),
        (0x07, UsbDeviceType.PRINTER),
        (0xFF, UsbDeviceType.OTHER),
        (0x04, UsbDeviceType.UNKNOWN),
    ],
)
def test_device_type_for_class(cls, expected):
    assert device_type_for_class(cls) == expected


def test_add_requires_init():
    with pytest.raises(UsbError):
        UsbRedirect().add_device(UsbDeviceInfo(vendor_id=1, product_id=2))


def test_add_sets_type_and_state(usb):
    dev = UsbDeviceInfo(vendor_id=0x1234, product_id=0x5678, device_class=0x08,
                        state=UsbDeviceState.CONNECTED)
    assert usb.add_device(dev) is True
    found = usb.find_device(0x1234, 0x5678)
    assert found.type == UsbDeviceType.STORAGE
    assert found.state == UsbDeviceState.DISCONNECTED


def test_add_duplicate_returns_false(usb):
    dev = UsbDeviceInfo(vendor_id=1, product_id=2)
    usb.add_device(dev)
    assert usb.add_device(UsbDeviceInfo(vendor_id=1, product_id=2)) is False
    assert len(usb.devices()) == 1


def test_capacity_limit(usb):
    for pid in range(MAX_USB_DEVICES):
        usb.add_device(UsbDeviceInfo(vendor_id=1, product_id=pid))
    with pytest.raises(UsbError):
        usb.add_device(UsbDeviceInfo(vendor_id=2, product_id=0))


def test_remove_device_keeps_order(usb):
    for pid in (10, 20, 30):
        usb.add_device(UsbDeviceInfo(vendor_id=1, product_id=pid))
    usb.remove_device(1, 20)
    assert [d.product_id for d in usb.devices()] == [10, 30]


def test_remove_missing_raises(usb):
    with pytest.raises(UsbError):
        usb.remove_device(9, 9)


def test_callbacks(usb):
    connected, disconnected = [], []
    usb.set_callbacks(connected.append, disconnected.append, None)
    usb.add_device(UsbDeviceInfo(vendor_id=3, product_id=4, product="Widget"))
    usb.remove_device(3, 4)
    assert [d.product for d in connected] == ["Widget"]
    assert [(d.vendor_id, d.product_id) for d in disconnected] == [(3, 4)]


def test_devices_returns_copies(usb):
    usb.add_device(UsbDeviceInfo(vendor_id=1, product_id=1))
    copy = usb.devices()[0]
    copy.state = UsbDeviceState.ERROR
    assert usb.find_device(1, 1).state == UsbDeviceState.DISCONNECTED


def test_find_device_uninitialized_is_none():
    assert UsbRedirect().find_device(1, 1) is None


def test_connect_disconnect(usb):
    usb.add_device(UsbDeviceInfo(vendor_id=5, product_id=6))
    usb.connect_device(5, 6)
    assert usb.find_device(5, 6).state == UsbDeviceState.CONNECTED
    usb.disconnect_device(5, 6)
    assert usb.find_device(5, 6).state == UsbDeviceState.DISCONNECTED


def test_connect_missing_device_raises(usb):
    usb.add_device(UsbDeviceInfo(vendor_id=5, product_id=6))
    with pytest.raises(UsbError):
        usb.connect_device(7, 7)
    assert usb.find_device(7, 7) is None
    assert usb.find_device(5, 6).state == UsbDeviceState.DISCONNECTED


def test_disconnect_missing_device_raises(usb):
    usb.add_device(UsbDeviceInfo(vendor_id=5, product_id=6))
    usb.connect_device(5, 6)
    with pytest.raises(UsbError):
        usb.disconnect_device(7, 7)
    assert usb.find_device(5, 6).state == UsbDeviceState.CONNECTED


def test_reset_missing_device_raises(usb):
    usb.add_device(UsbDeviceInfo(vendor_id=5, product_id=6))
    with pytest.raises(UsbError):
        usb.reset_device(7, 7)
    assert [(d.vendor_id, d.product_id) for d in usb.devices()] == [(5, 6)]


def test_send_empty_raises(usb):
    with pytest.raises(UsbError):
        usb.send_data(1, 1, b"")


def test_receive_returns_empty(usb):
    assert usb.receive_data(1, 1, 64) == b""


def test_start_stop(usb):
    usb.start()
    assert usb.running is True
    usb.stop()
    assert usb.running is False


def test_start_requires_init():
    with pytest.raises(UsbError):
        UsbRedirect().start()


def test_terminate_clears_devices(usb):
    usb.add_device(UsbDeviceInfo(vendor_id=1, product_id=1))
    usb.terminate()
    usb.init()
    assert usb.devices() == []
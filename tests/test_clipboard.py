import pytest

from winland.clipboard import (
    MIME_IMAGE_JPEG,
    MIME_IMAGE_PNG,
    MIME_TEXT_HTML,
    MIME_TEXT_PLAIN,
    MIME_TEXT_UTF8,
    ClipboardBridge,
    ClipboardError,
)


@pytest.fixture
def clip():
    bridge = ClipboardBridge()
    bridge.init()
    return bridge


def test_set_data_requires_init():
    bridge = ClipboardBridge()
    with pytest.raises(ClipboardError):
        bridge.set_data("text/plain", b"x")


def test_get_data_round_trip(clip):
    clip.set_data("application/octet-stream", b"\x00\x01\x02")
    assert clip.get_data("application/octet-stream") == b"\x00\x01\x02"


def test_get_data_mismatched_mime_returns_none(clip):
    clip.set_data("application/json", b"{}")
    assert clip.get_data("text/plain") is None


def test_get_data_empty_returns_none(clip):
    assert clip.get_data(MIME_TEXT_PLAIN) is None


def test_text_round_trip(clip):
    clip.set_text("hello world")
    assert clip.get_text() == "hello world"
    assert clip.get_data(MIME_TEXT_PLAIN) == b"hello world"


def test_text_accepts_utf8_mime(clip):
    clip.set_data(MIME_TEXT_UTF8, "héllo".encode("utf-8"))
    assert clip.get_text() == "héllo"


def test_get_text_none_for_html(clip):
    clip.set_html("<b>hi</b>")
    assert clip.get_text() is None
    assert clip.get_html() == "<b>hi</b>"


def test_get_html_none_for_text(clip):
    clip.set_text("plain")
    assert clip.get_html() is None


def test_clear_removes_contents(clip):
    clip.set_text("abc")
    clip.clear()
    assert clip.available_mime_types() == []
    assert clip.get_text() is None


def test_clear_requires_init():
    with pytest.raises(ClipboardError):
        ClipboardBridge().clear()


def test_available_mime_types(clip):
    clip.set_html("<p>x</p>")
    assert clip.available_mime_types() == [MIME_TEXT_HTML]


def test_has_mime_type(clip):
    clip.set_text("t")
    assert clip.has_mime_type(MIME_TEXT_PLAIN) is True
    assert clip.has_mime_type(MIME_TEXT_HTML) is False


def test_has_mime_type_uninitialized_is_false():
    assert ClipboardBridge().has_mime_type(MIME_TEXT_PLAIN) is False


@pytest.mark.parametrize(
    "fmt, mime, expected_fmt",
    [("png", MIME_IMAGE_PNG, "png"), ("jpg", MIME_IMAGE_JPEG, "jpeg"), ("jpeg", MIME_IMAGE_JPEG, "jpeg")],
)
def test_image_round_trip(clip, fmt, mime, expected_fmt):
    clip.set_image(b"\x89PNG", fmt)
    assert clip.has_mime_type(mime)
    assert clip.get_image() == (b"\x89PNG", expected_fmt)


def test_image_unsupported_format(clip):
    with pytest.raises(ClipboardError):
        clip.set_image(b"data", "tiff")


def test_image_empty_data(clip):
    with pytest.raises(ClipboardError):
        clip.set_image(b"", "png")


def test_get_image_none_for_text(clip):
    clip.set_text("not an image")
    assert clip.get_image() is None


def test_callback_receives_mime(clip):
    seen = []
    clip.set_callback(seen.append)
    clip.set_text("a")
    clip.set_html("<i>b</i>")
    assert seen == [MIME_TEXT_PLAIN, MIME_TEXT_HTML]


def test_terminate_clears_and_blocks(clip):
    clip.set_text("a")
    clip.terminate()
    assert clip.get_text() is None
    with pytest.raises(ClipboardError):
        clip.get_data(MIME_TEXT_PLAIN)


def test_init_twice_keeps_contents(clip):
    clip.set_text("keep")
    clip.init()
    assert clip.get_text() == "keep"
"""Clipboard shared between the Wayland side and the host system."""

from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MIME_TEXT_PLAIN = "text/plain"
MIME_TEXT_UTF8 = "text/plain;charset=utf-8"
MIME_TEXT_HTML = "text/html"
MIME_IMAGE_PNG = "image/png"
MIME_IMAGE_JPEG = "image/jpeg"
MIME_IMAGE_BMP = "image/bmp"
MIME_URI_LIST = "text/uri-list"

_IMAGE_FORMAT_TO_MIME = {
    "png": MIME_IMAGE_PNG,
    "jpeg": MIME_IMAGE_JPEG,
    "jpg": MIME_IMAGE_JPEG,
    "bmp": MIME_IMAGE_BMP,
}

_MIME_TO_IMAGE_FORMAT = {
    MIME_IMAGE_PNG: "png",
    MIME_IMAGE_JPEG: "jpeg",
    MIME_IMAGE_BMP: "bmp",
}

_TEXT_MIME_TYPES = (MIME_TEXT_PLAIN, MIME_TEXT_UTF8)

ClipboardCallback = Callable[[str], None]


class ClipboardError(Exception):
    """Raised when a clipboard operation cannot be carried out."""


class ClipboardBridge:
    """Holds a single clipboard entry: one MIME type and its bytes."""

    def __init__(self) -> None:
        self.initialized = False
        self.mime_type: Optional[str] = None
        self.data: Optional[bytes] = None
        self.on_clipboard_changed: Optional[ClipboardCallback] = None

    def init(self) -> None:
        """Prepare the clipboard; does nothing if already initialised."""
        if self.initialized:
            logger.info("Clipboard bridge already initialized")
            return
        self.mime_type = None
        self.data = None
        self.on_clipboard_changed = None
        self.initialized = True
        logger.info("Clipboard bridge initialized")

    def terminate(self) -> None:
        """Clear the clipboard and shut the bridge down."""
        if not self.initialized:
            return
        self.clear()
        self.initialized = False
        logger.info("Clipboard bridge terminated")

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise ClipboardError("clipboard bridge is not initialized")

    def set_data(self, mime_type: str, data: bytes) -> None:
        """Replace the clipboard contents and notify the change callback."""
        self._require_initialized()
        if mime_type is None or data is None:
            raise ClipboardError("mime type and data are required")
        self.clear()
        self.mime_type = mime_type
        self.data = bytes(data)
        logger.info("Clipboard data set: %s (%d bytes)", mime_type, len(self.data))
        if self.on_clipboard_changed is not None:
            self.on_clipboard_changed(mime_type)

    def get_data(self, mime_type: str) -> Optional[bytes]:
        """Return the stored bytes if they carry ``mime_type``, else None."""
        self._require_initialized()
        if mime_type is None:
            raise ClipboardError("mime type is required")
        if self.data is None or self.mime_type != mime_type:
            return None
        return self.data

    def clear(self) -> None:
        """Drop the stored contents."""
        self._require_initialized()
        self.mime_type = None
        self.data = None
        logger.info("Clipboard cleared")

    def available_mime_types(self) -> list[str]:
        """List the MIME types on offer (zero or one)."""
        self._require_initialized()
        return [self.mime_type] if self.mime_type is not None else []

    def has_mime_type(self, mime_type: str) -> bool:
        if not self.initialized or mime_type is None:
            return False
        return self.mime_type == mime_type

    def set_text(self, text: str) -> None:
        if text is None:
            raise ClipboardError("text is required")
        self.set_data(MIME_TEXT_PLAIN, text.encode("utf-8"))

    def get_text(self) -> Optional[str]:
        """Return the stored text, or None if the contents are not text."""
        if not self.initialized or self.data is None:
            return None
        if self.mime_type not in _TEXT_MIME_TYPES:
            return None
        return self.data.decode("utf-8", errors="replace")

    def set_html(self, html: str) -> None:
        if html is None:
            raise ClipboardError("html is required")
        self.set_data(MIME_TEXT_HTML, html.encode("utf-8"))

    def get_html(self) -> Optional[str]:
        """Return the stored HTML, or None if the contents are not HTML."""
        if not self.initialized or self.data is None:
            return None
        if self.mime_type != MIME_TEXT_HTML:
            return None
        return self.data.decode("utf-8", errors="replace")

    def set_image(self, data: bytes, image_format: str) -> None:
        """Store image bytes; ``image_format`` is png, jpeg, jpg or bmp."""
        if not data or not image_format:
            raise ClipboardError("image data and format are required")
        mime_type = _IMAGE_FORMAT_TO_MIME.get(image_format)
        if mime_type is None:
            logger.error("Unsupported image format: %s", image_format)
            raise ClipboardError(f"unsupported image format: {image_format}")
        self.set_data(mime_type, data)

    def get_image(self) -> Optional[tuple[bytes, str]]:
        """Return ``(data, format)`` if the contents are an image, else None."""
        self._require_initialized()
        if self.data is None or self.mime_type is None:
            return None
        image_format = _MIME_TO_IMAGE_FORMAT.get(self.mime_type)
        if image_format is None:
            return None
        return self.data, image_format

    def set_callback(self, on_clipboard_changed: Optional[ClipboardCallback]) -> None:
        self.on_clipboard_changed = on_clipboard_changed
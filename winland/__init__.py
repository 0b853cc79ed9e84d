"""Bridge services for a Wayland desktop session: clipboard, USB registry, file sharing, notifications, audio, debug overlay and display filters."""

__version__ = "1.0.0"

__all__ = [
    "clipboard",
    "usb",
    "file_sharing",
    "notifications",
    "audio",
    "debug_overlay",
    "display_filter",
]
# winland

These are bridge services for a Wayland desktop session that runs alongside
an Android host. Each service is a plain Python object. You call `init()` to
load its defaults and `terminate()` to shut it down. Failed operations raise
the error class of the module, such as `ClipboardError`, `UsbError`,
`FileSharingError`, `NotificationError` or `AudioError`.

## Modules

- `winland.clipboard`
  - `ClipboardBridge` holds one clipboard entry: a MIME type and its bytes.
  - Entries can be set and read with `set_text`/`get_text`, `set_html`/`get_html` and `set_image`/`get_image`. Images can be `png`, `jpeg`, `jpg` or `bmp`.
  - `set_data`/`get_data` work with any MIME type.
  - `set_callback` registers a function that is called with the MIME type whenever the contents change.
- `winland.usb`
  - `UsbRedirect` keeps a registry of `UsbDeviceInfo` records, at most 32.
  - Each device's `UsbDeviceType` is derived from its class code by `device_type_for_class`.
  - Devices are looked up by vendor and product id.
  - A device's `UsbDeviceState` is tracked through `connect_device` and `disconnect_device`.
  - `start()` and `stop()` run a background polling thread.
- `winland.file_sharing`
  - `FileSharing` copies, moves, deletes and renames files.
  - `scan_folder` lists a folder as `FileInfo` records.
  - `detect_file_type` classifies a path by its extension.
  - `linux_to_android_path` and `android_to_linux_path` map paths between the downloads folder and the home folder set in `SharingConfig`.
  - `sync_to_android` and `sync_to_linux` copy a single file across.
  - `start_watching` runs a periodic sync thread.
- `winland.notifications`
  - `NotificationBridge` stores up to 100 `LinuxNotification` records. When it is full, the oldest one is evicted.
  - `parse_message` reads `APP_NAME|TITLE|BODY|ICON|PRIORITY` text.
  - `start_listener` accepts such messages on a Unix socket in a background thread.
  - `send_to_android` and `close_on_android` track posted notifications in `posted`.
- `winland.audio`
  - `AudioBridge` manages the stream format (`AudioFormat`).
  - It moves PCM data through a bounded queue. `process_input` and `process_output` do this with input and output volume and mute applied.
  - `next_playback_buffer` returns one full buffer, padded with silence.
  - `volume_to_millibel` converts a linear volume to millibels.
- `winland.debug_overlay`
  - `DebugOverlay` collects frame-rate, memory, surface, input, render and Wayland statistics.
  - `render_stats` returns the overlay text as `(x, y, text)` lines, chosen by the `DebugInfo` flags.
  - `background_quad` returns the background corners in clip space.
  - `log_lines` returns a ring buffer of the last 100 log lines.
- `winland.display_filter`
  - `DisplayFilter` holds a `FilterConfig` and the settings for night, reading, colour-blind and high-contrast modes.
  - It has a night-mode schedule. `is_night_mode_active` and `check_schedule` take an optional hour.
  - `apply` runs RGBA pixels through the colour matrix of the active filter: sepia for night, reading and sepia; grayscale; or invert.
  - `apply_matrix` and `color_matrix` can also be used on their own.

## Install

```
pip install .
pip install ".[test]"   # with pytest
```

## Example

```python
from winland.clipboard import ClipboardBridge

clipboard = ClipboardBridge()
clipboard.init()
clipboard.set_callback(lambda mime: print("changed:", mime))
clipboard.set_text("hello")
print(clipboard.get_text())                # "hello"
print(clipboard.available_mime_types())    # ["text/plain"]
```

```python
from winland.display_filter import DisplayFilter, FilterType

screen_filter = DisplayFilter()
screen_filter.init()
screen_filter.set_night_schedule(True, 22, 6)
print(screen_filter.is_night_mode_active(23))   # True

screen_filter.set_type(FilterType.GRAYSCALE)
screen_filter.set_intensity(1.0)
screen_filter.enable(True)
print(screen_filter.apply([(1.0, 0.0, 0.0, 1.0)]))
```

## What this package does not do

- It is not a Wayland compositor. It draws nothing to a screen.
  - The debug overlay and display filter produce text, coordinates and filtered pixel values for a renderer to use.
- `UsbRedirect` does not talk to real USB hardware.
  - `send_data` only logs.
  - `receive_data` returns empty bytes.
- `FileSharing.sync()` marks a pass as complete but does not copy files by itself. Copying happens through `copy`, `sync_to_android` and `sync_to_linux`.
- `AudioBridge` does not open a sound device. Audio goes only through its in-memory queue.
- There is no command-line program.

## Tests

```
pytest
```
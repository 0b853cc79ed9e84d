"""File sharing between the Android storage and the Linux home folder."""

from __future__ import annotations

import dataclasses
import enum
import itertools
import logging
import os
import shutil
import stat
import threading
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MAX_FILES = 10000
_COPY_CHUNK = 8192


class FileSharingError(Exception):
    """Raised when a file sharing operation fails."""


class FileType(enum.IntEnum):
    UNKNOWN = 0
    TEXT = 1
    IMAGE = 2
    VIDEO = 3
    AUDIO = 4
    DOCUMENT = 5
    ARCHIVE = 6
    DIRECTORY = 7


class FileOperation(enum.IntEnum):
    NONE = 0
    COPY = 1
    MOVE = 2
    DELETE = 3
    RENAME = 4


_EXTENSION_TYPES = {
    **dict.fromkeys(("txt", "md", "csv", "log"), FileType.TEXT),
    **dict.fromkeys(("jpg", "jpeg", "png", "gif", "bmp", "webp"), FileType.IMAGE),
    **dict.fromkeys(("mp4", "avi", "mkv", "mov"), FileType.VIDEO),
    **dict.fromkeys(("mp3", "wav", "ogg", "flac"), FileType.AUDIO),
    **dict.fromkeys(
        ("pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx"), FileType.DOCUMENT
    ),
    **dict.fromkeys(("zip", "tar", "gz", "bz2", "7z", "rar"), FileType.ARCHIVE),
}


def _extension(path: str) -> str:
    dot = path.rfind(".")
    if dot <= 0:
        return ""
    return path[dot + 1:]


def detect_file_type(path: Optional[str]) -> FileType:
    """Guess a file's type from the text after the last dot in its path."""
    if path is None:
        return FileType.UNKNOWN
    return _EXTENSION_TYPES.get(_extension(path).lower(), FileType.UNKNOWN)


@dataclass
class FileInfo:
    path: str
    name: str
    type: FileType = FileType.UNKNOWN
    size: int = 0
    modified_time: int = 0
    is_directory: bool = False
    is_hidden: bool = False
    is_readonly: bool = False


@dataclass
class SharingConfig:
    android_downloads: str = "/sdcard/Download"
    linux_home: str = "/data/data/com.winland.server/files/home"
    shared_folder: str = "/data/data/com.winland.server/files/shared"

    auto_sync: bool = True
    sync_interval_seconds: float = 300
    bidirectional: bool = True

    allow_text: bool = True
    allow_images: bool = True
    allow_videos: bool = True
    allow_documents: bool = True
    allow_archives: bool = True

    max_file_size: int = 100 * 1024 * 1024
    max_sync_files: int = 1000


PathCallback = Callable[[str], None]
ProgressCallback = Callable[[int], None]


class FileSharing:
    """Moves files between the two sides and keeps them in sync."""

    def __init__(self, defaults: Optional[SharingConfig] = None) -> None:
        self._defaults = defaults if defaults is not None else SharingConfig()
        self.initialized = False
        self.config = dataclasses.replace(self._defaults)
        self.syncing = False
        self.sync_progress = 0
        self.pending_ops: list[tuple[str, FileOperation]] = []
        self._lock = threading.RLock()
        self._watch_stop = threading.Event()
        self._watch_thread: Optional[threading.Thread] = None
        self.on_file_added: Optional[PathCallback] = None
        self.on_file_removed: Optional[PathCallback] = None
        self.on_file_modified: Optional[PathCallback] = None
        self.on_sync_progress: Optional[ProgressCallback] = None

    def init(self) -> None:
        """Load the default settings and create the shared folders."""
        if self.initialized:
            return
        self.config = dataclasses.replace(self._defaults)
        self.syncing = False
        self.sync_progress = 0
        self.pending_ops = []
        self.on_file_added = None
        self.on_file_removed = None
        self.on_file_modified = None
        self.on_sync_progress = None
        for folder in (self.config.linux_home, self.config.shared_folder):
            try:
                os.mkdir(folder, 0o755)
            except OSError:
                pass
        self.initialized = True
        logger.info("File sharing initialized")

    def terminate(self) -> None:
        if not self.initialized:
            return
        self.stop_watching()
        self.initialized = False
        logger.info("File sharing terminated")

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise FileSharingError("file sharing is not initialized")

    def set_config(self, config: SharingConfig) -> None:
        if config is None:
            return
        with self._lock:
            self.config = dataclasses.replace(config)

    def setup_shared_folder(self) -> str:
        """Link the Android downloads folder into the shared folder."""
        self._require_initialized()
        link = f"{self.config.shared_folder}/Downloads"
        try:
            os.unlink(link)
        except OSError:
            pass
        try:
            os.symlink(self.config.android_downloads, link)
        except OSError as exc:
            logger.error("Failed to create symlink: %s", exc)
            raise FileSharingError(f"failed to create symlink: {exc}") from exc
        logger.info("Shared folder setup complete")
        return link

    def _check_folder(self, folder: str) -> str:
        if not os.path.isdir(folder):
            raise FileSharingError(f"folder not available: {folder}")
        return folder

    def mount_android_downloads(self) -> str:
        """Make sure the Android downloads folder is reachable."""
        folder = self._check_folder(self.config.android_downloads)
        logger.info("Android Downloads folder mounted")
        return folder

    def mount_linux_home(self) -> str:
        """Make sure the Linux home folder is reachable."""
        folder = self._check_folder(self.config.linux_home)
        logger.info("Linux home folder mounted")
        return folder

    def sync(self) -> None:
        """Run one synchronisation pass."""
        with self._lock:
            if not self.initialized or self.syncing:
                raise FileSharingError("sync not possible now")
            self.syncing = True
            self.sync_progress = 0
        logger.info("Starting file sync...")
        self.sync_progress = 100
        self.syncing = False
        if self.on_sync_progress is not None:
            self.on_sync_progress(self.sync_progress)
        logger.info("File sync complete")

    def sync_to_android(self, linux_path: str) -> str:
        """Copy a Linux-side file to its Android location and return that path."""
        if linux_path is None:
            raise FileSharingError("path is required")
        android_path = self.linux_to_android_path(linux_path)
        self.copy(linux_path, android_path)
        return android_path

    def sync_to_linux(self, android_path: str) -> str:
        """Copy an Android-side file to its Linux location and return that path."""
        if android_path is None:
            raise FileSharingError("path is required")
        linux_path = self.android_to_linux_path(android_path)
        self.copy(android_path, linux_path)
        return linux_path

    def cancel_sync(self) -> None:
        self.syncing = False
        logger.info("Sync cancelled")

    def copy(self, src: str, dst: str) -> None:
        if src is None or dst is None:
            raise FileSharingError("source and destination are required")
        try:
            src_file = open(src, "rb")
        except OSError as exc:
            logger.error("Failed to open source file: %s", src)
            raise FileSharingError(f"failed to open source file: {src}") from exc
        with src_file:
            try:
                dst_file = open(dst, "wb")
            except OSError as exc:
                logger.error("Failed to create destination file: %s", dst)
                raise FileSharingError(f"failed to create destination file: {dst}") from exc
            with dst_file:
                try:
                    shutil.copyfileobj(src_file, dst_file, _COPY_CHUNK)
                except OSError as exc:
                    logger.error("Failed to write to destination file")
                    raise FileSharingError("failed to write destination file") from exc
        logger.info("File copied: %s -> %s", src, dst)

    def move(self, src: str, dst: str) -> None:
        if src is None or dst is None:
            raise FileSharingError("source and destination are required")
        try:
            os.rename(src, dst)
        except OSError:
            self.copy(src, dst)
            self.delete(src)
            return
        logger.info("File moved: %s -> %s", src, dst)

    def delete(self, path: str) -> None:
        """Remove a file or an empty directory."""
        if path is None:
            raise FileSharingError("path is required")
        try:
            st = os.stat(path)
        except OSError as exc:
            logger.error("File not found: %s", path)
            raise FileSharingError(f"file not found: {path}") from exc
        try:
            if stat.S_ISDIR(st.st_mode):
                os.rmdir(path)
            else:
                os.unlink(path)
        except OSError as exc:
            logger.error("Failed to delete: %s", exc)
            raise FileSharingError(f"failed to delete {path}: {exc}") from exc
        logger.info("File deleted: %s", path)

    def rename(self, old_path: str, new_name: str) -> str:
        """Give a file a new name in the same folder and return the new path."""
        if old_path is None or new_name is None:
            raise FileSharingError("path and new name are required")
        head, sep, _ = old_path.rpartition("/")
        new_path = f"{head}{sep}{new_name}"
        self.move(old_path, new_path)
        return new_path

    def scan_folder(self, path: str) -> list[FileInfo]:
        """List the entries of a folder, at most MAX_FILES of them."""
        if path is None:
            raise FileSharingError("path is required")
        try:
            names = os.listdir(path)
        except OSError as exc:
            logger.error("Failed to open directory: %s", path)
            raise FileSharingError(f"failed to open directory: {path}") from exc
        files = []
        for name in itertools.islice(names, MAX_FILES):
            info = FileInfo(path=f"{path}/{name}", name=name)
            try:
                st = os.stat(info.path)
            except OSError:
                files.append(info)
                continue
            info.size = st.st_size
            info.modified_time = int(st.st_mtime)
            info.is_directory = stat.S_ISDIR(st.st_mode)
            info.is_hidden = name.startswith(".")
            info.is_readonly = not (st.st_mode & stat.S_IWUSR)
            info.type = detect_file_type(info.path)
            files.append(info)
        return files

    def is_allowed_type(self, file_type: FileType) -> bool:
        allowed = {
            FileType.TEXT: self.config.allow_text,
            FileType.IMAGE: self.config.allow_images,
            FileType.VIDEO: self.config.allow_videos,
            FileType.DOCUMENT: self.config.allow_documents,
            FileType.ARCHIVE: self.config.allow_archives,
        }
        return allowed.get(file_type, True)

    @property
    def watching(self) -> bool:
        return self._watch_thread is not None and self._watch_thread.is_alive()

    def _watch(self, stop: threading.Event) -> None:
        logger.info("Watch thread started")
        while self.initialized and not stop.wait(self.config.sync_interval_seconds):
            if self.config.auto_sync:
                try:
                    self.sync()
                except FileSharingError as exc:
                    logger.error("Automatic sync failed: %s", exc)
        logger.info("Watch thread stopped")

    def start_watching(self) -> None:
        """Start a thread that syncs every ``sync_interval_seconds``."""
        self._require_initialized()
        if self.watching:
            return
        self._watch_stop = threading.Event()
        self._watch_thread = threading.Thread(
            target=self._watch, args=(self._watch_stop,), name="file-watch", daemon=True
        )
        self._watch_thread.start()
        logger.info("File watching started")

    def stop_watching(self) -> None:
        self._watch_stop.set()
        thread = self._watch_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._watch_thread = None
        logger.info("File watching stopped")

    def linux_to_android_path(self, linux_path: str) -> str:
        if linux_path is None:
            raise FileSharingError("path is required")
        home = self.config.linux_home
        if linux_path.startswith(home):
            return self.config.android_downloads + linux_path[len(home):]
        return linux_path

    def android_to_linux_path(self, android_path: str) -> str:
        if android_path is None:
            raise FileSharingError("path is required")
        downloads = self.config.android_downloads
        if android_path.startswith(downloads):
            return self.config.linux_home + android_path[len(downloads):]
        return android_path

    def set_callbacks(
        self,
        on_file_added: Optional[PathCallback],
        on_file_removed: Optional[PathCallback],
        on_file_modified: Optional[PathCallback],
        on_sync_progress: Optional[ProgressCallback],
    ) -> None:
        self.on_file_added = on_file_added
        self.on_file_removed = on_file_removed
        self.on_file_modified = on_file_modified
        self.on_sync_progress = on_sync_progress
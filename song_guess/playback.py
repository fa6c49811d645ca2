"""Audio playback boundary and an mpv-backed driver for preview clips."""

import logging
import shutil
import subprocess
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable

from .config import DEFAULT_PLAYER_COMMAND

logger = logging.getLogger(__name__)


class PlaybackError(Exception):
    """Audio could not be loaded or started; the caller may retry."""


class PlaybackDriver(ABC):
    """One audio output. Only the round controller should drive it."""

    def __init__(self) -> None:
        self._on_finished: Callable[[], None] | None = None
        self._on_error: Callable[[str], None] | None = None

    def set_finished_callback(self, callback: Callable[[], None] | None) -> None:
        """Register the callback fired once when a clip reaches its natural end."""
        self._on_finished = callback

    def set_error_callback(self, callback: Callable[[str], None] | None) -> None:
        """Register the callback fired when a started clip dies before its natural end."""
        self._on_error = callback

    def _notify_finished(self) -> None:
        callback = self._on_finished
        if callback is not None:
            callback()

    def _notify_error(self, message: str) -> None:
        callback = self._on_error
        if callback is not None:
            callback(message)

    @abstractmethod
    def load(self, url: str) -> None: ...

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def stop(self) -> None:
        """Stop playback; calling it when nothing plays is a no-op."""


class MpvPlaybackDriver(PlaybackDriver):
    """Streams a preview URL through an `mpv` subprocess.

    A watcher thread waits for the process to exit. A clean exit is a natural
    end and a non-zero exit is a playback error, unless `stop()` was called
    for that process. The callbacks registered when `play()` ran are the ones
    the watcher reports to.
    """

    def __init__(self, command: str = DEFAULT_PLAYER_COMMAND) -> None:
        super().__init__()
        self._command = command
        self._url: str | None = None
        self._process: subprocess.Popen | None = None
        self._lock = threading.Lock()
        self._stopped_processes: set[subprocess.Popen] = set()

    def is_available(self) -> bool:
        return shutil.which(self._command) is not None

    def load(self, url: str) -> None:
        if not url:
            raise PlaybackError("No preview URL to load.")
        self.stop()
        self._url = url

    def play(self) -> None:
        if not self._url:
            raise PlaybackError("Nothing loaded.")

        cmd = [
            self._command,
            "--no-video",
            "--no-terminal",
            "--load-scripts=no",
            self._url,
        ]
        with self._lock:
            if self._process is not None and self._process.poll() is None:
                return
            try:
                process = subprocess.Popen(
                    cmd,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    stdin=subprocess.DEVNULL,
                )
            except (OSError, ValueError) as exc:
                raise PlaybackError(f"Could not start {self._command}: {exc}") from exc
            self._process = process

        logger.debug("Started %s (pid %s) for %s", self._command, process.pid, self._url)
        watcher = threading.Thread(
            target=self._watch,
            args=(process, self._on_finished, self._on_error),
            daemon=True,
        )
        watcher.start()

    def stop(self) -> None:
        with self._lock:
            process = self._process
            self._process = None
            if process is None:
                return
            self._stopped_processes.add(process)

        if process.poll() is not None:
            return
        try:
            process.terminate()
            process.wait(timeout=2.0)
        except subprocess.TimeoutExpired:
            process.kill()
        except OSError:
            # Process already gone.
            pass

    def _watch(
        self,
        process: subprocess.Popen,
        on_finished: Callable[[], None] | None,
        on_error: Callable[[str], None] | None,
    ) -> None:
        returncode = process.wait()
        with self._lock:
            stopped = process in self._stopped_processes
            self._stopped_processes.discard(process)
            if self._process is process:
                self._process = None

        if stopped:
            return
        if returncode != 0:
            logger.warning("%s exited with status %s for %s", self._command, returncode, self._url)
            if on_error is not None:
                on_error(f"{self._command} could not play the preview (exit status {returncode}).")
            return
        logger.debug("Playback finished naturally (pid %s)", process.pid)
        if on_finished is not None:
            on_finished()

"""Background check of the server for a newer plugin version."""

from __future__ import annotations

import enum
import json
import re
import threading
import time
import urllib.error
import urllib.request
from typing import Callable, Optional

DEFAULT_URL = "https://www.xynth.audio/api/info/lephonk"
NOTIFY_UPDATES_ID = "NotifyUpdates"
LAST_UPDATE_TIME_ID = "LastUpdateTime"
CHECK_INTERVAL_MS = 16 * 60 * 60 * 1000  # 16 hours

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class UpdateState(enum.IntEnum):
    INVALID = -1
    NO_UPDATE_AVAILABLE = 0
    UPDATE_AVAILABLE = 1
    CHECKING = 2
    ERROR = 3


class UpdateCheckError(Exception):
    """The server could not be asked; ``detail`` holds the status text shown to the user."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def version_to_sum(version: str) -> int:
    """Fold a dotted version into one number, each part weighted by 1000."""
    total = 0
    for weight_power, part in enumerate(reversed(version.split("."))):
        match = _LEADING_INT.match(part)
        number = int(match.group(1)) if match else 0
        total += number * 1000**weight_power
    return total


def is_newer_version(current: str, newest: str) -> bool:
    return version_to_sum(newest) > version_to_sum(current)


def fetch_latest_version(url: str = DEFAULT_URL, timeout: float = 2.0) -> str:
    """Ask the server for its latest version string."""
    try:
        with urllib.request.urlopen(url, timeout=timeout) as response:
            status = response.status
            body = response.read()
    except urllib.error.HTTPError as error:
        raise UpdateCheckError(str(error.code)) from None
    except (urllib.error.URLError, OSError, ValueError):
        raise UpdateCheckError("0") from None
    if status != 200:
        raise UpdateCheckError(str(status))
    try:
        document = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        document = None
    version = document.get("version") if isinstance(document, dict) else None
    if not isinstance(version, str):
        raise UpdateCheckError(f"{status} - JSON error")
    return version


class UpdateChecker:
    """Runs the version check on a thread; ``poll`` delivers the result on the caller's side."""

    def __init__(
        self,
        settings,
        current_version: str,
        url: str = DEFAULT_URL,
        fetch: Callable[[str, float], str] = fetch_latest_version,
        on_update: Optional[Callable[[bool], None]] = None,
        show_updates: Optional[Callable[[], None]] = None,
        timeout: float = 2.0,
    ) -> None:
        self.settings = settings
        self.current_version = current_version
        self.url = url
        self.timeout = timeout
        self.on_update = on_update or (lambda available: None)
        self.show_updates = show_updates or (lambda: None)
        self._fetch = fetch
        self._lock = threading.Lock()
        self._state = UpdateState.INVALID
        self._latest_version = "null"
        self._thread: Optional[threading.Thread] = None
        self._awaiting_result = False
        self._startup_has_been_checked = True

    @property
    def state(self) -> UpdateState:
        with self._lock:
            return self._state

    @property
    def latest_version(self) -> str:
        with self._lock:
            return self._latest_version

    @property
    def notifications_disabled(self) -> bool:
        """True when the user asked not to be told about updates."""
        return bool(self.settings.get(NOTIFY_UPDATES_ID, False))

    @notifications_disabled.setter
    def notifications_disabled(self, value: bool) -> None:
        self.settings.set(NOTIFY_UPDATES_ID, bool(value))
        self.settings.save_if_needed()

    @property
    def last_update_time(self) -> int:
        return int(self.settings.get(LAST_UPDATE_TIME_ID, 0))

    @last_update_time.setter
    def last_update_time(self, value: int) -> None:
        self.settings.set(LAST_UPDATE_TIME_ID, int(value))
        self.settings.save_if_needed()

    def check_last_update_time(self, now_ms: Optional[int] = None) -> bool:
        """True, and the time recorded, if the last check is at least 16 hours old."""
        now = int(time.time() * 1000) if now_ms is None else int(now_ms)
        if now - self.last_update_time >= CHECK_INTERVAL_MS:
            self.last_update_time = now
            return True
        return False

    def startup_update_check(self) -> bool:
        """Start a check at launch unless disabled or done recently; returns whether it started."""
        if self.notifications_disabled:
            return False
        if not self.check_last_update_time():
            return False
        self._startup_has_been_checked = False
        self.check_for_updates()
        return True

    def check_for_updates(self) -> None:
        with self._lock:
            if self._state == UpdateState.CHECKING:
                return
            self._state = UpdateState.CHECKING
            self._awaiting_result = True
        self._thread = threading.Thread(target=self._check, daemon=True)
        self._thread.start()

    def _check(self) -> None:
        try:
            version = self._fetch(self.url, self.timeout)
        except UpdateCheckError as error:
            with self._lock:
                self._latest_version = error.detail
                self._state = UpdateState.ERROR
            return
        available = is_newer_version(self.current_version, version)
        with self._lock:
            self._latest_version = version
            self._state = (
                UpdateState.UPDATE_AVAILABLE if available else UpdateState.NO_UPDATE_AVAILABLE
            )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the running check ends; returns False if it is still running."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def poll(self) -> UpdateState:
        """Deliver a finished result to the callbacks once; returns the current state."""
        with self._lock:
            state = self._state
            deliver = self._awaiting_result and state != UpdateState.CHECKING
            if deliver:
                self._awaiting_result = False
        if not deliver:
            return state
        available = state == UpdateState.UPDATE_AVAILABLE
        self.on_update(available)
        if not self._startup_has_been_checked:
            self._startup_has_been_checked = True
            if available:
                self.show_updates()
        return state
import json
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from lephonk.settings import UserSettings
from lephonk.update_checker import (
    CHECK_INTERVAL_MS,
    UpdateCheckError,
    UpdateChecker,
    UpdateState,
    fetch_latest_version,
    is_newer_version,
    version_to_sum,
)


@pytest.fixture
def settings(tmp_path):
    return UserSettings(tmp_path / "u.settings")


def _server(status, body):
    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, *args):
            pass

    server = HTTPServer(("127.0.0.1", 0), Handler)
    threading.Thread(target=server.serve_forever, daemon=True).start()
    return server


def test_version_ordering():
    assert is_newer_version("1.0.0", "1.0.1")
    assert not is_newer_version("1.0.1", "1.0.0")
    assert not is_newer_version("1.2.3", "1.2.3")
    assert is_newer_version("1.9.9", "1.10.0")
    assert version_to_sum("7") == 7


def test_version_parts_weighted_by_thousand():
    assert version_to_sum("1.0") == version_to_sum("1000")
    assert version_to_sum("x.y") == 0


def test_fetch_reads_version():
    server = _server(200, json.dumps({"version": "1.2.3"}).encode())
    try:
        url = f"http://127.0.0.1:{server.server_port}/info"
        assert fetch_latest_version(url, 2.0) == "1.2.3"
    finally:
        server.shutdown()


def test_fetch_json_error():
    server = _server(200, json.dumps({"version": 5}).encode())
    try:
        url = f"http://127.0.0.1:{server.server_port}/info"
        with pytest.raises(UpdateCheckError) as info:
            fetch_latest_version(url, 2.0)
        assert info.value.detail == "200 - JSON error"
    finally:
        server.shutdown()


def test_fetch_http_error_carries_status():
    server = _server(404, b"{}")
    try:
        url = f"http://127.0.0.1:{server.server_port}/info"
        with pytest.raises(UpdateCheckError) as info:
            fetch_latest_version(url, 2.0)
        assert info.value.detail == "404"
    finally:
        server.shutdown()


def test_update_available(settings):
    results = []
    checker = UpdateChecker(
        settings, "1.0.0", fetch=lambda url, timeout: "2.0.0", on_update=results.append
    )
    assert checker.state == UpdateState.INVALID
    checker.check_for_updates()
    assert checker.wait(5.0)
    assert checker.poll() == UpdateState.UPDATE_AVAILABLE
    assert results == [True]
    assert checker.latest_version == "2.0.0"
    checker.poll()
    assert results == [True]


def test_up_to_date(settings):
    results = []
    checker = UpdateChecker(
        settings, "1.0.0", fetch=lambda url, timeout: "1.0.0", on_update=results.append
    )
    checker.check_for_updates()
    checker.wait(5.0)
    assert checker.poll() == UpdateState.NO_UPDATE_AVAILABLE
    assert results == [False]


def test_error_state(settings):
    def failing(url, timeout):
        raise UpdateCheckError("0")

    checker = UpdateChecker(settings, "1.0.0", fetch=failing)
    checker.check_for_updates()
    checker.wait(5.0)
    assert checker.poll() == UpdateState.ERROR
    assert checker.latest_version == "0"


def test_startup_check_shows_updates(settings):
    shown = []
    checker = UpdateChecker(
        settings,
        "1.0.0",
        fetch=lambda url, timeout: "1.1.0",
        show_updates=lambda: shown.append(True),
    )
    assert checker.startup_update_check() is True
    checker.wait(5.0)
    checker.poll()
    assert shown == [True]
    assert checker.startup_update_check() is False


def test_startup_check_respects_opt_out(settings):
    calls = []
    checker = UpdateChecker(
        settings, "1.0.0", fetch=lambda url, timeout: calls.append(url) or "9.0.0"
    )
    checker.notifications_disabled = True
    assert checker.startup_update_check() is False
    assert calls == []
    assert UserSettings(settings.path).get("NotifyUpdates", False) is True


def test_last_update_time_threshold(settings):
    checker = UpdateChecker(settings, "1.0.0")
    now = CHECK_INTERVAL_MS * 3
    assert checker.check_last_update_time(now) is True
    assert checker.last_update_time == now
    assert checker.check_last_update_time(now + CHECK_INTERVAL_MS - 1) is False
    assert checker.check_last_update_time(now + CHECK_INTERVAL_MS) is True
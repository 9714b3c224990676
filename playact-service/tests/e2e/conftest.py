"""
Fixtures for browser tests: a live app server on a free local port.

Browsers come from pytest-playwright (`page` fixture). Run with
`RUN_E2E=1 pytest -m e2e` after `playwright install chromium`.
"""
import socket
import threading
import time

import pytest
import uvicorn

from playact.api.main import app


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture(scope="session")
def live_server():
    port = _free_port()
    server = uvicorn.Server(uvicorn.Config(app, host="127.0.0.1", port=port, log_level="warning"))
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.time() + 10
    while not server.started:
        if time.time() > deadline:
            raise RuntimeError("App server did not start within 10 seconds")
        time.sleep(0.05)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=5)


@pytest.fixture(scope="session")
def base_url(live_server):
    return live_server


@pytest.fixture
def playact_page(page, base_url):
    from playact.testing.pages import PlayActPage

    playact_page = PlayActPage(page, base_url)
    playact_page.setup_error_listener()
    playact_page.goto("/")
    return playact_page

"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import os
import stat
import sys
import textwrap
from pathlib import Path
from typing import Callable

import httpx
import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from milan.config import Settings  # noqa: E402
from milan.main import create_app  # noqa: E402

LOCAL_IP = "127.0.0.1"

ECHO_SCRIPT = """
import sys
print(sys.argv[1] if len(sys.argv) > 1 else "")
"""


@pytest.fixture
def scripts_dir(tmp_path: Path) -> Path:
    path = tmp_path / "scripts"
    path.mkdir()
    return path


@pytest.fixture
def make_script(scripts_dir: Path) -> Callable[..., Path]:
    """Write ``<name>.py`` into the scripts directory and return its path."""

    def _make(name: str, body: str, extension: str = ".py", executable: bool = False) -> Path:
        path = scripts_dir / f"{name}{extension}"
        path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
        if executable:
            path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture
def settings(scripts_dir: Path) -> Settings:
    return Settings(
        scripts_dir=str(scripts_dir),
        allowed_ips=["100.64.0.7", "192.168.1.*"],
        interpreter=sys.executable,
        timeout_seconds=5.0,
    )


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture(autouse=True)
def _no_ambient_config(monkeypatch, tmp_path):
    """Keep a developer's config.yaml or MILAN_* env out of the tests."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("MILAN_"):
            monkeypatch.delenv(key, raising=False)


def agent_client(app, ip: str = LOCAL_IP) -> httpx.AsyncClient:
    """Async client talking to the app in-process as caller ``ip``."""
    transport = httpx.ASGITransport(app=app, client=(ip, 51234))
    return httpx.AsyncClient(transport=transport, base_url="http://testserver")


async def get(app, path: str, ip: str = LOCAL_IP) -> httpx.Response:
    async with agent_client(app, ip) as c:
        return await c.get(path)

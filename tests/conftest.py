"""Shared fixtures for the watermark_layout test suite."""

import io
import subprocess

import pytest
from PIL import Image

from watermark_layout import engine


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config directory at a temporary location."""
    config_home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("APPDATA", str(config_home))
    return config_home


@pytest.fixture
def magick_calls(monkeypatch):
    """Record ImageMagick invocations instead of running them."""
    calls = []

    def fake_run(argv, capture_output=False, timeout=None):
        calls.append(list(argv))
        return subprocess.CompletedProcess(argv, 0, b"", b"")

    monkeypatch.setattr(engine, "HAS_MAGICK", True)
    monkeypatch.setattr(engine.subprocess, "run", fake_run)
    return calls


def make_png(width, height, color=(255, 0, 0, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buf, "PNG")
    return buf.getvalue()


@pytest.fixture
def photo(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(make_png(1920, 1080))
    return path


@pytest.fixture
def assets(tmp_path):
    root = tmp_path / "assets"
    root.mkdir()
    (root / "watermark.png").write_bytes(make_png(400, 200))
    (root / "square.png").write_bytes(make_png(300, 300))
    return root

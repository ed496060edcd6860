import sys
from pathlib import Path

import pytest

from mcp_fetch import clipboard
from mcp_fetch.clipboard import (
    ClipboardBackend,
    ClipboardError,
    ClipboardPublisher,
    MacClipboardBackend,
    WaylandClipboardBackend,
    X11ClipboardBackend,
    detect_backend,
    run_helper,
    split_diagnostics,
)
from mcp_fetch.config import ClipboardTiming
from mcp_fetch.models import CompositeImage


class FakeBackend(ClipboardBackend):
    name = "fake"

    def __init__(self, missing=(), fail_on_copy=None, fail_on_paste=None):
        self._missing = list(missing)
        self.fail_on_copy = fail_on_copy
        self.fail_on_paste = fail_on_paste
        self.events = []
        self.paths = []

    def missing_executables(self):
        return self._missing

    def set_clipboard_image(self, path: Path) -> None:
        assert path.exists()
        self.paths.append(path)
        self.events.append(("copy", path.read_bytes()))
        if self.fail_on_copy == len(self.paths):
            raise ClipboardError("copy exploded")

    def trigger_paste(self) -> None:
        self.events.append(("paste", None))
        if self.fail_on_paste is not None and self.fail_on_paste == len(self.paths):
            raise ClipboardError("paste exploded")


def _composites(count):
    return [CompositeImage(data=f"png-{i}".encode(), width=10, height=10, image_count=2) for i in range(count)]


def _publisher(backend, sleeps):
    return ClipboardPublisher(backend, ClipboardTiming(copy_settle_seconds=0.25, paste_settle_seconds=0.75), sleeps.append)


def test_publish_copies_then_pastes_each_batch_in_order():
    backend = FakeBackend()
    sleeps = []
    report = _publisher(backend, sleeps).publish(_composites(3))

    assert report.ok
    assert (report.image_count, report.batch_count) == (6, 3)
    assert backend.events == [
        ("copy", b"png-0"),
        ("paste", None),
        ("copy", b"png-1"),
        ("paste", None),
        ("copy", b"png-2"),
        ("paste", None),
    ]
    assert sleeps == [0.25, 0.75] * 3


def test_temp_artifacts_are_removed_after_success():
    backend = FakeBackend()
    _publisher(backend, []).publish(_composites(2))
    assert backend.paths
    assert not any(path.exists() for path in backend.paths)
    assert not backend.paths[0].parent.exists()


def test_temp_artifacts_are_removed_after_failure():
    backend = FakeBackend(fail_on_paste=2)
    report = _publisher(backend, []).publish(_composites(3))
    assert report.error == "paste exploded"
    assert not backend.paths[0].parent.exists()
    assert [event for event, _ in backend.events] == ["copy", "paste", "copy", "paste"]


def test_missing_helpers_abort_before_any_copy():
    backend = FakeBackend(missing=["xclip", "xdotool"])
    report = _publisher(backend, []).publish(_composites(2))
    assert not report.ok
    assert "xclip, xdotool" in report.error
    assert backend.events == []


def test_unsupported_host_is_reported(monkeypatch):
    def _no_backend():
        raise ClipboardError("Clipboard publishing is not supported on plan9")

    monkeypatch.setattr(clipboard, "detect_backend", _no_backend)
    report = ClipboardPublisher(sleep=lambda _: None).publish(_composites(1))
    assert report.error == "Clipboard publishing is not supported on plan9"


def test_nothing_to_publish():
    backend = FakeBackend()
    report = _publisher(backend, []).publish([])
    assert report.ok
    assert report.batch_count == 0
    assert backend.events == []


def test_split_diagnostics():
    warnings, errors = split_diagnostics("WARNING: slow clipboard\n\nError: cannot open display\n  warning again \n")
    assert warnings == ["WARNING: slow clipboard", "warning again"]
    assert errors == ["Error: cannot open display"]


def test_run_helper_ignores_warnings():
    run_helper([sys.executable, "-c", "import sys; sys.stderr.write('Warning: clipboard is slow\\n')"])


def test_run_helper_raises_on_error_lines():
    with pytest.raises(ClipboardError) as excinfo:
        run_helper([sys.executable, "-c", "import sys; sys.stderr.write('cannot open display\\n')"])
    assert "cannot open display" in str(excinfo.value)


def test_run_helper_raises_on_silent_non_zero_exit():
    with pytest.raises(ClipboardError) as excinfo:
        run_helper([sys.executable, "-c", "raise SystemExit(3)"])
    assert "status 3" in str(excinfo.value)


def test_run_helper_feeds_stdin(tmp_path):
    source = tmp_path / "in.bin"
    source.write_bytes(b"abc")
    script = "import sys; data = sys.stdin.buffer.read(); sys.exit(0 if data == b'abc' else 1)"
    run_helper([sys.executable, "-c", script], stdin_path=source)


def test_run_helper_missing_executable():
    with pytest.raises(ClipboardError) as excinfo:
        run_helper(["definitely-not-a-clipboard-helper-xyz"])
    assert "not installed" in str(excinfo.value)


def test_detect_backend_per_platform(monkeypatch):
    monkeypatch.setattr(sys, "platform", "darwin")
    assert isinstance(detect_backend(), MacClipboardBackend)

    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("WAYLAND_DISPLAY", "wayland-0")
    assert isinstance(detect_backend(), WaylandClipboardBackend)

    monkeypatch.delenv("WAYLAND_DISPLAY")
    monkeypatch.setenv("DISPLAY", ":0")
    assert isinstance(detect_backend(), X11ClipboardBackend)

    monkeypatch.delenv("DISPLAY")
    with pytest.raises(ClipboardError):
        detect_backend()

    monkeypatch.setattr(sys, "platform", "win32")
    with pytest.raises(ClipboardError):
        detect_backend()


def test_missing_executables_uses_path_lookup(monkeypatch):
    monkeypatch.setattr(clipboard.shutil, "which", lambda exe: None if exe == "xdotool" else f"/usr/bin/{exe}")
    assert X11ClipboardBackend().missing_executables() == ["xdotool"]


def test_backend_must_implement_copy_and_paste():
    class CopyOnly(ClipboardBackend):
        def set_clipboard_image(self, path: Path) -> None:
            pass

    with pytest.raises(TypeError):
        ClipboardBackend()
    with pytest.raises(TypeError):
        CopyOnly()

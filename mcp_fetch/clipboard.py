"""Handing composite images to the host clipboard and pasting them."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .config import ClipboardTiming
from .models import CompositeImage, PublishReport

logger = logging.getLogger("mcp_fetch")

HELPER_TIMEOUT_SECONDS = 30.0


class ClipboardError(RuntimeError):
    """A clipboard helper is missing or reported a hard error."""


def split_diagnostics(stderr: str) -> Tuple[List[str], List[str]]:
    """Split helper stderr into (warnings, errors), ignoring blank lines."""
    warnings: List[str] = []
    errors: List[str] = []
    for line in stderr.splitlines():
        line = line.strip()
        if not line:
            continue
        if "warning" in line.lower():
            warnings.append(line)
        else:
            errors.append(line)
    return warnings, errors


def run_helper(args: Sequence[str], stdin_path: Optional[Path] = None) -> None:
    """Run a clipboard helper and raise ``ClipboardError`` on hard failures.

    Diagnostics go to a temporary file instead of a pipe because some helpers
    fork a process that keeps serving the selection and holds inherited pipes
    open.
    """
    name = args[0]
    with tempfile.TemporaryFile() as err_file:
        try:
            if stdin_path is not None:
                with open(stdin_path, "rb") as stdin:
                    proc = subprocess.run(
                        list(args),
                        stdin=stdin,
                        stdout=subprocess.DEVNULL,
                        stderr=err_file,
                        timeout=HELPER_TIMEOUT_SECONDS,
                        check=False,
                    )
            else:
                proc = subprocess.run(
                    list(args),
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=err_file,
                    timeout=HELPER_TIMEOUT_SECONDS,
                    check=False,
                )
        except FileNotFoundError as exc:
            raise ClipboardError(f"Clipboard helper {name} is not installed") from exc
        except subprocess.TimeoutExpired as exc:
            raise ClipboardError(f"Clipboard helper {name} timed out") from exc
        err_file.seek(0)
        stderr = err_file.read().decode("utf-8", errors="replace")

    warnings, errors = split_diagnostics(stderr)
    for warning in warnings:
        logger.warning("%s: %s", name, warning)
    if errors:
        raise ClipboardError(f"{name} failed: {'; '.join(errors)}")
    if proc.returncode != 0:
        raise ClipboardError(f"{name} exited with status {proc.returncode}")


class ClipboardBackend(ABC):
    """Platform clipboard capability: place an image, then paste it."""

    name = "clipboard"
    required_executables: Tuple[str, ...] = ()

    def missing_executables(self) -> List[str]:
        return [exe for exe in self.required_executables if shutil.which(exe) is None]

    @abstractmethod
    def set_clipboard_image(self, path: Path) -> None:
        """Place the PNG at ``path`` on the clipboard."""

    @abstractmethod
    def trigger_paste(self) -> None:
        """Paste the clipboard into the focused window."""


class MacClipboardBackend(ClipboardBackend):
    name = "macos"
    required_executables = ("osascript",)

    def set_clipboard_image(self, path: Path) -> None:
        posix_path = str(path.resolve()).replace("\\", "\\\\").replace('"', '\\"')
        script = f'set the clipboard to (read (POSIX file "{posix_path}") as «class PNGf»)'
        run_helper(["osascript", "-e", script])

    def trigger_paste(self) -> None:
        run_helper(
            [
                "osascript",
                "-e",
                'tell application "System Events" to keystroke "v" using command down',
            ]
        )


class X11ClipboardBackend(ClipboardBackend):
    name = "x11"
    required_executables = ("xclip", "xdotool")

    def set_clipboard_image(self, path: Path) -> None:
        run_helper(["xclip", "-selection", "clipboard", "-t", "image/png", "-i", str(path)])

    def trigger_paste(self) -> None:
        run_helper(["xdotool", "key", "--clearmodifiers", "ctrl+v"])


class WaylandClipboardBackend(ClipboardBackend):
    name = "wayland"
    required_executables = ("wl-copy", "wtype")

    def set_clipboard_image(self, path: Path) -> None:
        run_helper(["wl-copy", "--type", "image/png"], stdin_path=path)

    def trigger_paste(self) -> None:
        run_helper(["wtype", "-M", "ctrl", "v", "-m", "ctrl"])


def detect_backend() -> ClipboardBackend:
    """Pick the clipboard backend for the running host."""
    if sys.platform == "darwin":
        return MacClipboardBackend()
    if sys.platform.startswith("linux") or "bsd" in sys.platform:
        if os.environ.get("WAYLAND_DISPLAY"):
            return WaylandClipboardBackend()
        if os.environ.get("DISPLAY"):
            return X11ClipboardBackend()
        raise ClipboardError("No graphical session found (neither WAYLAND_DISPLAY nor DISPLAY is set)")
    raise ClipboardError(f"Clipboard publishing is not supported on {sys.platform}")


class ClipboardPublisher:
    """Copy each composite to the clipboard and paste it, one at a time."""

    def __init__(
        self,
        backend: Optional[ClipboardBackend] = None,
        timing: Optional[ClipboardTiming] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.backend = backend
        self.timing = timing or ClipboardTiming()
        self._sleep = sleep

    def _resolve_backend(self) -> ClipboardBackend:
        if self.backend is None:
            self.backend = detect_backend()
        return self.backend

    def publish(self, composites: Sequence[CompositeImage]) -> PublishReport:
        image_count = sum(composite.image_count for composite in composites)
        report = PublishReport(image_count=image_count, batch_count=len(composites))
        if not composites:
            return report

        try:
            backend = self._resolve_backend()
        except ClipboardError as exc:
            report.error = str(exc)
            return report

        missing = backend.missing_executables()
        if missing:
            report.error = (
                f"Required clipboard helper(s) not found for {backend.name}: {', '.join(missing)}"
            )
            logger.error("%s", report.error)
            return report

        with tempfile.TemporaryDirectory(prefix="mcp-fetch-clipboard-") as tmp_dir:
            try:
                for index, composite in enumerate(composites, start=1):
                    artifact = Path(tmp_dir) / f"batch-{index:02d}.png"
                    artifact.write_bytes(composite.data)
                    logger.info(
                        "Copying batch %d/%d (%d image(s), %dx%d) to the clipboard",
                        index,
                        len(composites),
                        composite.image_count,
                        composite.width,
                        composite.height,
                    )
                    backend.set_clipboard_image(artifact)
                    self._sleep(self.timing.copy_settle_seconds)
                    backend.trigger_paste()
                    self._sleep(self.timing.paste_settle_seconds)
            except (ClipboardError, OSError) as exc:
                report.error = str(exc)
                logger.error("Clipboard publishing stopped: %s", exc)
        return report

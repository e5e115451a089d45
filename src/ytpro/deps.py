from __future__ import annotations

import logging
import shutil
import sys
from dataclasses import dataclass
from typing import Callable

from .errors import ToolNotFound, UnsupportedPlatform
from .steps import StepRunner

log = logging.getLogger(__name__)

HasCommand = Callable[[str], bool]

REQUIRED_TOOLS = ("yt-dlp", "ffmpeg")
_HOMEBREW_INSTALL = (
    '$(curl -fsSL https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh)'
)
_WINGET_FLAGS = ["-e", "--accept-package-agreements", "--accept-source-agreements"]


@dataclass(frozen=True)
class InstallStep:
    message: str
    command: list[str]


def has_command(name: str) -> bool:
    return shutil.which(name) is not None


def missing_tools(has_cmd: HasCommand = has_command) -> list[str]:
    return [tool for tool in REQUIRED_TOOLS if not has_cmd(tool)]


def platform_name(platform: str | None = None) -> str:
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return "linux"
    if platform == "darwin":
        return "darwin"
    if platform in ("win32", "cygwin"):
        return "windows"
    return platform


def install_plan(os_name: str, has_cmd: HasCommand = has_command) -> list[InstallStep]:
    """Ordered install steps for yt-dlp and ffmpeg on ``os_name``."""
    if os_name == "linux":
        return _linux_plan(has_cmd)
    if os_name == "darwin":
        steps = []
        if not has_cmd("brew"):
            steps.append(InstallStep("Installing Homebrew", ["/bin/bash", "-c", _HOMEBREW_INSTALL]))
        steps.append(InstallStep("Installing yt-dlp", ["brew", "install", "yt-dlp"]))
        steps.append(InstallStep("Installing ffmpeg", ["brew", "install", "ffmpeg"]))
        return steps
    if os_name == "windows":
        if not has_cmd("winget"):
            raise ToolNotFound("winget not found.")
        return [
            InstallStep("Installing yt-dlp", ["winget", "install", "--id=yt-dlp.yt-dlp", *_WINGET_FLAGS]),
            InstallStep("Installing FFmpeg", ["winget", "install", "--id=Gyan.FFmpeg", *_WINGET_FLAGS]),
        ]
    raise UnsupportedPlatform(f"Unsupported OS: {os_name}")


def _linux_plan(has_cmd: HasCommand) -> list[InstallStep]:
    if has_cmd("apt"):
        return [
            InstallStep("Refreshing apt", ["sudo", "apt", "update", "-y"]),
            InstallStep("Installing yt-dlp & ffmpeg", ["sudo", "apt", "install", "-y", *REQUIRED_TOOLS]),
        ]
    if has_cmd("dnf"):
        return [
            InstallStep("Installing yt-dlp & ffmpeg", ["sudo", "dnf", "install", "-y", *REQUIRED_TOOLS]),
        ]
    if has_cmd("pacman"):
        return [
            InstallStep("Syncing pacman", ["sudo", "pacman", "-Sy", "--noconfirm"]),
            InstallStep(
                "Installing yt-dlp & ffmpeg",
                ["sudo", "pacman", "-S", "--noconfirm", *REQUIRED_TOOLS],
            ),
        ]
    raise UnsupportedPlatform("Unsupported Linux package manager.")


def ensure_dependencies(
    runner: StepRunner,
    *,
    auto_install: bool = True,
    os_name: str | None = None,
    has_cmd: HasCommand = has_command,
) -> list[str]:
    """Install missing tools; returns the names that were missing.

    Any failing step propagates and ends the run.
    """
    missing = missing_tools(has_cmd)
    if not missing:
        return []
    log.info("Missing tools: %s", ", ".join(missing))
    if not auto_install:
        raise ToolNotFound(f"Missing required tools: {', '.join(missing)}")
    for step in install_plan(os_name or platform_name(), has_cmd):
        runner.run(step.message, step.command)
    return missing

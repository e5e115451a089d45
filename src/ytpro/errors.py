"""
Exceptions raised by ytpro. Process-level failures derive from YtproError and
end the run; line-level parse anomalies never raise.
"""

from __future__ import annotations

from pathlib import Path


class YtproError(Exception):
    """Base exception for all application-specific errors."""


class ToolNotFound(YtproError):
    """Raised when a required executable is missing and cannot be installed."""


class UnsupportedPlatform(ToolNotFound):
    """Raised when no installer path exists for the detected OS or package manager."""


class StepFailed(YtproError):
    """Raised when a monitored step exits with a non-zero status."""

    def __init__(self, message: str, log_path: Path | None = None, returncode: int | None = None):
        super().__init__(message)
        self.log_path = log_path
        self.returncode = returncode


class StepCancelled(YtproError):
    """Raised when a monitored step was terminated on request."""


class StreamReadError(YtproError):
    """Raised on an I/O error while draining a monitored process's output."""


class ProbeUnavailable(YtproError):
    """Raised when the duration probe cannot produce a positive duration."""

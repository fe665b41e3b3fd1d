from __future__ import annotations

import json
import os
import sys
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class ConnectToolCliError(Exception):
    pass


class UsageError(ConnectToolCliError):
    pass


class OpError(ConnectToolCliError):
    pass


CONNECTTOOL_SOCKET = "CONNECTTOOL_SOCKET"

WINDOWS_SOCKET_PATH = "connect_tool.sock"
POSIX_SOCKET_PATH = "/tmp/connect_tool.sock"

CALL_TIMEOUT_SECONDS = 5.0


class HostPlatform(str, Enum):
    WINDOWS = "windows"
    POSIX = "posix"


def host_platform(platform: str | None = None) -> HostPlatform:
    raw = sys.platform if platform is None else platform
    if str(raw or "").lower().startswith("win"):
        return HostPlatform.WINDOWS
    return HostPlatform.POSIX


def default_socket_path(host: HostPlatform) -> str:
    if host is HostPlatform.WINDOWS:
        return WINDOWS_SOCKET_PATH
    return POSIX_SOCKET_PATH


@dataclass(frozen=True)
class GlobalOpts:
    socket_path: str
    json_output: bool = False
    verbose: bool = False
    timeout_seconds: float = CALL_TIMEOUT_SECONDS


@dataclass(frozen=True)
class Deadline:
    """Absolute expiry for the single remote call of an invocation.

    Created when a command starts executing; ``remaining()`` is the timeout
    handed to the call.
    """

    expires_at: float
    clock: Callable[[], float] = field(default=time.monotonic, compare=False, repr=False)

    @classmethod
    def after(cls, seconds: float, *, clock: Callable[[], float] = time.monotonic) -> "Deadline":
        return cls(expires_at=clock() + float(seconds), clock=clock)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self.clock())


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def resolve_socket_path(explicit: str | None, *, host: HostPlatform) -> str:
    if explicit is not None:
        v = explicit.strip()
        if not v:
            raise UsageError("empty --socket path")
        return v
    return _env_or_none(CONNECTTOOL_SOCKET) or default_socket_path(host)


def _print_json(obj: Any) -> None:
    sys.stdout.write(json.dumps(obj, separators=(",", ":"), sort_keys=True) + "\n")

from __future__ import annotations

import contextlib
import time
from typing import Any, Callable, Iterator

import grpc
from google.protobuf.message import Message

from .cli_shared import OpError
from .protocol import Rpc


def channel_target(socket_path: str) -> str:
    return f"unix:{socket_path}"


def _status_text(e: grpc.RpcError) -> str:
    code = e.code() if callable(getattr(e, "code", None)) else None
    details = e.details() if callable(getattr(e, "details", None)) else None
    name = getattr(code, "name", "") or "UNKNOWN"
    detail = str(details or "").strip() or str(e).strip()
    if detail:
        return f"{name}: {detail}"
    return name


class ServiceClient:
    """Unary calls against ``ConnectToolService`` over one open channel."""

    def __init__(
        self,
        channel: grpc.Channel,
        *,
        target: str,
        on_event: Callable[[str], None] | None = None,
    ) -> None:
        self.channel = channel
        self.target = target
        self._on_event = on_event

    def _note(self, msg: str) -> None:
        if self._on_event is not None:
            self._on_event(msg)

    def call(self, rpc: Rpc, request: Message, *, timeout: float, failure_label: str) -> Any:
        if timeout <= 0:
            raise OpError(f"{failure_label}: DEADLINE_EXCEEDED: deadline spent before the call was sent")
        method = self.channel.unary_unary(
            rpc.path,
            request_serializer=lambda msg: msg.SerializeToString(),
            response_deserializer=rpc.response_class.FromString,
        )
        self._note(f"calling {rpc.path} on {self.target} (timeout {timeout:.2f}s)")
        started = time.monotonic()
        try:
            resp = method(request, timeout=timeout)
        except grpc.RpcError as e:
            raise OpError(f"{failure_label}: {_status_text(e)}") from e
        self._note(f"{rpc.name} ok in {int((time.monotonic() - started) * 1000)}ms")
        return resp


@contextlib.contextmanager
def open_client(
    socket_path: str,
    *,
    on_event: Callable[[str], None] | None = None,
) -> Iterator[ServiceClient]:
    target = channel_target(socket_path)
    with grpc.insecure_channel(target) as channel:
        yield ServiceClient(channel, target=target, on_event=on_event)

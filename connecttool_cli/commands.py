from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from google.protobuf import json_format
from google.protobuf.message import Message

from . import protocol
from .cli_shared import Deadline, UsageError
from .protocol import Rpc


class Command(str, Enum):
    CREATE = "create"
    JOIN = "join"
    LEAVE = "leave"
    INFO = "info"
    FRIENDS = "friends"
    INVITE = "invite"
    VPN_STATUS = "vpn-status"
    VPN_ROUTES = "vpn-routes"


@dataclass(frozen=True)
class CommandInvocation:
    command: Command
    args: tuple[str, ...]
    socket_path: str


@dataclass(frozen=True)
class CommandSpec:
    command: Command
    rpc: Rpc
    summary: str
    failure_label: str
    render: Callable[[Any], list[str]]
    argument: str = ""
    request_field: str = ""

    def build_request(self, args: tuple[str, ...]) -> Message:
        fields: dict[str, str] = {}
        if self.argument:
            if not args:
                raise UsageError(f"missing {self.argument} (usage: {self.command.value} <{self.argument}>)")
            fields[self.request_field] = str(args[0])
        return self.rpc.request_class(**fields)


def _b(value: bool) -> str:
    return "true" if value else "false"


def format_ipv4(value: int) -> str:
    v = int(value)
    return f"{(v >> 24) & 0xFF}.{(v >> 16) & 0xFF}.{(v >> 8) & 0xFF}.{v & 0xFF}"


def render_create(resp: Any) -> list[str]:
    return [f"Success: {_b(resp.success)}, Lobby ID: {resp.lobby_id}"]


def render_join(resp: Any) -> list[str]:
    return [f"Success: {_b(resp.success)}, Message: {resp.message}"]


def render_success(resp: Any) -> list[str]:
    return [f"Success: {_b(resp.success)}"]


def render_info(resp: Any) -> list[str]:
    lines = [f"In Lobby: {_b(resp.is_in_lobby)}"]
    if not resp.is_in_lobby:
        return lines
    lines.append(f"Lobby ID: {resp.lobby_id}")
    lines.append("Members:")
    for m in resp.members:
        lines.append(f"  - Name: {m.name}, ID: {m.steam_id}, Ping: {m.ping}, Relay: {m.relay_info}")
    return lines


def render_friends(resp: Any) -> list[str]:
    lines = ["Friend Lobbies:"]
    for lobby in resp.lobbies:
        lines.append(f"  - Friend: {lobby.name} ({lobby.steam_id}), Lobby: {lobby.lobby_id}")
    return lines


def render_vpn_status(resp: Any) -> list[str]:
    lines = [f"Enabled: {_b(resp.enabled)}"]
    if not resp.enabled:
        return lines
    lines.append(f"Local IP: {resp.local_ip}")
    lines.append(f"Device: {resp.device_name}")
    if resp.HasField("stats"):
        stats = resp.stats
        lines.append("Stats:")
        lines.append(f"  Sent: {stats.packets_sent} pkts / {stats.bytes_sent} bytes")
        lines.append(f"  Recv: {stats.packets_received} pkts / {stats.bytes_received} bytes")
        lines.append(f"  Dropped: {stats.packets_dropped} pkts")
    return lines


def render_vpn_routes(resp: Any) -> list[str]:
    lines = ["Routing Table:"]
    for route in resp.routes:
        lines.append(f"  - IP: {format_ipv4(route.ip)}, Name: {route.name}, Local: {_b(route.is_local)}")
    return lines


COMMANDS: dict[Command, CommandSpec] = {
    spec.command: spec
    for spec in (
        CommandSpec(
            command=Command.CREATE,
            rpc=protocol.CREATE_LOBBY,
            summary="Create a new lobby",
            failure_label="could not create lobby",
            render=render_create,
        ),
        CommandSpec(
            command=Command.JOIN,
            rpc=protocol.JOIN_LOBBY,
            summary="Join a lobby",
            failure_label="could not join lobby",
            render=render_join,
            argument="lobby_id",
            request_field="lobby_id",
        ),
        CommandSpec(
            command=Command.LEAVE,
            rpc=protocol.LEAVE_LOBBY,
            summary="Leave current lobby",
            failure_label="could not leave lobby",
            render=render_success,
        ),
        CommandSpec(
            command=Command.INFO,
            rpc=protocol.GET_LOBBY_INFO,
            summary="Get current lobby info",
            failure_label="could not get lobby info",
            render=render_info,
        ),
        CommandSpec(
            command=Command.FRIENDS,
            rpc=protocol.GET_FRIEND_LOBBIES,
            summary="List friend lobbies",
            failure_label="could not get friend lobbies",
            render=render_friends,
        ),
        CommandSpec(
            command=Command.INVITE,
            rpc=protocol.INVITE_FRIEND,
            summary="Invite a friend",
            failure_label="could not invite friend",
            render=render_success,
            argument="friend_id",
            request_field="friend_steam_id",
        ),
        CommandSpec(
            command=Command.VPN_STATUS,
            rpc=protocol.GET_VPN_STATUS,
            summary="Get VPN status",
            failure_label="could not get VPN status",
            render=render_vpn_status,
        ),
        CommandSpec(
            command=Command.VPN_ROUTES,
            rpc=protocol.GET_VPN_ROUTING_TABLE,
            summary="Get VPN routing table",
            failure_label="could not get VPN routing table",
            render=render_vpn_routes,
        ),
    )
}


def execute(client: Any, invocation: CommandInvocation, *, deadline: Deadline) -> Any:
    spec = COMMANDS[invocation.command]
    request = spec.build_request(invocation.args)
    return client.call(
        spec.rpc,
        request,
        timeout=deadline.remaining(),
        failure_label=spec.failure_label,
    )


def response_document(command: Command, resp: Message) -> dict[str, Any]:
    body = json_format.MessageToDict(resp, preserving_proto_field_name=True)
    if command is Command.VPN_ROUTES:
        for raw, route in zip(body.get("routes") or [], resp.routes):
            raw["ip_text"] = format_ipv4(route.ip)
    return {
        "kind": f"connecttool.cli.{command.value}.v1",
        "response": body,
    }

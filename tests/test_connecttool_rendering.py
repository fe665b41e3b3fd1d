from __future__ import annotations

import json

import pytest

from connecttool_cli import protocol
from connecttool_cli.cli_shared import UsageError
from connecttool_cli.commands import (
    COMMANDS,
    Command,
    format_ipv4,
    render_create,
    render_friends,
    render_info,
    render_join,
    render_success,
    render_vpn_routes,
    render_vpn_status,
    response_document,
)


def _msg(name: str, /, **fields):
    return protocol.new_message(name, **fields)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0xC0A80001, "192.168.0.1"),
        (0x00000000, "0.0.0.0"),
        (0xFFFFFFFF, "255.255.255.255"),
        (0x0A000102, "10.0.1.2"),
    ],
)
def test_format_ipv4_decodes_big_endian_octets(value: int, expected: str) -> None:
    assert format_ipv4(value) == expected
    assert format_ipv4(value) == format_ipv4(value)


def test_render_create_matches_expected_line() -> None:
    resp = _msg("CreateLobbyResponse", success=True, lobby_id="L123")
    assert render_create(resp) == ["Success: true, Lobby ID: L123"]


def test_render_join_keeps_semantic_failure_visible() -> None:
    resp = _msg("JoinLobbyResponse", success=False, message="lobby is full")
    assert render_join(resp) == ["Success: false, Message: lobby is full"]


def test_render_success_only_prints_flag() -> None:
    assert render_success(_msg("LeaveLobbyResponse", success=True)) == ["Success: true"]
    assert render_success(_msg("InviteFriendResponse")) == ["Success: false"]


def test_render_info_not_in_lobby_ignores_member_data() -> None:
    resp = _msg(
        "GetLobbyInfoResponse",
        is_in_lobby=False,
        lobby_id="L9",
        members=[_msg("LobbyMember", name="ghost", steam_id="1", ping=3, relay_info="r")],
    )
    assert render_info(resp) == ["In Lobby: false"]


def test_render_info_in_lobby_with_no_members_prints_header_only() -> None:
    resp = _msg("GetLobbyInfoResponse", is_in_lobby=True, lobby_id="L1")
    assert render_info(resp) == ["In Lobby: true", "Lobby ID: L1", "Members:"]


def test_render_info_lists_members_in_service_order() -> None:
    resp = _msg(
        "GetLobbyInfoResponse",
        is_in_lobby=True,
        lobby_id="L1",
        members=[
            _msg("LobbyMember", name="zed", steam_id="76561198000000002", ping=41, relay_info="fra"),
            _msg("LobbyMember", name="amy", steam_id="76561198000000001", ping=7, relay_info="direct"),
        ],
    )
    assert render_info(resp) == [
        "In Lobby: true",
        "Lobby ID: L1",
        "Members:",
        "  - Name: zed, ID: 76561198000000002, Ping: 41, Relay: fra",
        "  - Name: amy, ID: 76561198000000001, Ping: 7, Relay: direct",
    ]


def test_render_friends_prints_header_even_when_empty() -> None:
    assert render_friends(_msg("GetFriendLobbiesResponse")) == ["Friend Lobbies:"]
    resp = _msg(
        "GetFriendLobbiesResponse",
        lobbies=[_msg("FriendLobby", name="bob", steam_id="42", lobby_id="L7")],
    )
    assert render_friends(resp) == ["Friend Lobbies:", "  - Friend: bob (42), Lobby: L7"]


def test_render_vpn_status_disabled_hides_details_and_stats() -> None:
    resp = _msg(
        "GetVPNStatusResponse",
        enabled=False,
        local_ip="10.0.0.2",
        device_name="tun0",
        stats=_msg("VPNStats", packets_sent=5, bytes_sent=500, packets_dropped=1),
    )
    assert render_vpn_status(resp) == ["Enabled: false"]


def test_render_vpn_status_enabled_without_stats() -> None:
    resp = _msg("GetVPNStatusResponse", enabled=True, local_ip="10.0.0.2", device_name="tun0")
    assert render_vpn_status(resp) == ["Enabled: true", "Local IP: 10.0.0.2", "Device: tun0"]


def test_render_vpn_status_enabled_with_zero_stats_still_prints_block() -> None:
    resp = _msg("GetVPNStatusResponse", enabled=True, local_ip="10.0.0.2", device_name="tun0")
    resp.stats.SetInParent()
    assert render_vpn_status(resp)[3:] == [
        "Stats:",
        "  Sent: 0 pkts / 0 bytes",
        "  Recv: 0 pkts / 0 bytes",
        "  Dropped: 0 pkts",
    ]


def test_render_vpn_status_enabled_with_stats() -> None:
    resp = _msg(
        "GetVPNStatusResponse",
        enabled=True,
        local_ip="10.0.0.2",
        device_name="tun0",
        stats=_msg(
            "VPNStats",
            packets_sent=10,
            bytes_sent=1400,
            packets_received=12,
            bytes_received=1700,
            packets_dropped=2,
        ),
    )
    assert render_vpn_status(resp) == [
        "Enabled: true",
        "Local IP: 10.0.0.2",
        "Device: tun0",
        "Stats:",
        "  Sent: 10 pkts / 1400 bytes",
        "  Recv: 12 pkts / 1700 bytes",
        "  Dropped: 2 pkts",
    ]


def test_render_vpn_routes_decodes_ip() -> None:
    resp = _msg(
        "GetVPNRoutingTableResponse",
        routes=[
            _msg("RouteEntry", ip=0xC0A80001, name="eth0", is_local=True),
            _msg("RouteEntry", ip=0x0A000005, name="peer-bob", is_local=False),
        ],
    )
    assert render_vpn_routes(resp) == [
        "Routing Table:",
        "  - IP: 192.168.0.1, Name: eth0, Local: true",
        "  - IP: 10.0.0.5, Name: peer-bob, Local: false",
    ]


def test_every_command_has_a_registry_entry() -> None:
    assert set(COMMANDS) == set(Command)
    for command, spec in COMMANDS.items():
        assert spec.command is command
        assert spec.summary
        assert spec.failure_label.startswith("could not ")


def test_build_request_fills_single_argument_field() -> None:
    req = COMMANDS[Command.INVITE].build_request(("76561198000000001",))
    assert req.friend_steam_id == "76561198000000001"
    req = COMMANDS[Command.JOIN].build_request(("L5",))
    assert req.lobby_id == "L5"
    assert COMMANDS[Command.CREATE].build_request(()).ByteSize() == 0


def test_build_request_passes_empty_argument_through() -> None:
    assert COMMANDS[Command.JOIN].build_request(("",)).lobby_id == ""
    with pytest.raises(UsageError, match="missing lobby_id"):
        COMMANDS[Command.JOIN].build_request(())


def test_response_document_uses_proto_field_names_and_ip_text() -> None:
    resp = _msg(
        "GetVPNRoutingTableResponse",
        routes=[_msg("RouteEntry", ip=0xC0A80001, name="eth0", is_local=True)],
    )
    doc = response_document(Command.VPN_ROUTES, resp)
    assert doc["kind"] == "connecttool.cli.vpn-routes.v1"
    route = doc["response"]["routes"][0]
    assert route["is_local"] is True
    assert route["ip"] == 0xC0A80001
    assert route["ip_text"] == "192.168.0.1"
    json.dumps(doc)

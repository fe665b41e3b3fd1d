"""Wire contract of the ConnectTool gRPC service.

The message layout mirrors ``connect_tool.proto`` of the service. Message
classes are built at import time from a ``FileDescriptorProto`` so the client
needs neither generated ``_pb2`` modules nor a ``protoc`` step; field names,
numbers and types here are the interoperability contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

PROTO_PACKAGE = "connecttool"
SERVICE_NAME = "ConnectToolService"
SERVICE_FULL_NAME = f"{PROTO_PACKAGE}.{SERVICE_NAME}"
PROTO_FILE_NAME = "connect_tool.proto"

_F = descriptor_pb2.FieldDescriptorProto

_BOOL = _F.TYPE_BOOL
_STRING = _F.TYPE_STRING
_INT32 = _F.TYPE_INT32
_UINT32 = _F.TYPE_UINT32
_UINT64 = _F.TYPE_UINT64
_MESSAGE = _F.TYPE_MESSAGE

# (field name, number, type, repeated, message type name)
_MESSAGE_LAYOUT: tuple[tuple[str, tuple[tuple[str, int, int, bool, str], ...]], ...] = (
    ("CreateLobbyRequest", ()),
    (
        "CreateLobbyResponse",
        (
            ("success", 1, _BOOL, False, ""),
            ("lobby_id", 2, _STRING, False, ""),
        ),
    ),
    ("JoinLobbyRequest", (("lobby_id", 1, _STRING, False, ""),)),
    (
        "JoinLobbyResponse",
        (
            ("success", 1, _BOOL, False, ""),
            ("message", 2, _STRING, False, ""),
        ),
    ),
    ("LeaveLobbyRequest", ()),
    ("LeaveLobbyResponse", (("success", 1, _BOOL, False, ""),)),
    ("GetLobbyInfoRequest", ()),
    (
        "LobbyMember",
        (
            ("steam_id", 1, _STRING, False, ""),
            ("name", 2, _STRING, False, ""),
            ("ping", 3, _INT32, False, ""),
            ("relay_info", 4, _STRING, False, ""),
        ),
    ),
    (
        "GetLobbyInfoResponse",
        (
            ("is_in_lobby", 1, _BOOL, False, ""),
            ("lobby_id", 2, _STRING, False, ""),
            ("members", 3, _MESSAGE, True, "LobbyMember"),
        ),
    ),
    ("GetFriendLobbiesRequest", ()),
    (
        "FriendLobby",
        (
            ("steam_id", 1, _STRING, False, ""),
            ("name", 2, _STRING, False, ""),
            ("lobby_id", 3, _STRING, False, ""),
        ),
    ),
    ("GetFriendLobbiesResponse", (("lobbies", 1, _MESSAGE, True, "FriendLobby"),)),
    ("InviteFriendRequest", (("friend_steam_id", 1, _STRING, False, ""),)),
    ("InviteFriendResponse", (("success", 1, _BOOL, False, ""),)),
    ("GetVPNStatusRequest", ()),
    (
        "VPNStats",
        (
            ("packets_sent", 1, _UINT64, False, ""),
            ("bytes_sent", 2, _UINT64, False, ""),
            ("packets_received", 3, _UINT64, False, ""),
            ("bytes_received", 4, _UINT64, False, ""),
            ("packets_dropped", 5, _UINT64, False, ""),
        ),
    ),
    (
        "GetVPNStatusResponse",
        (
            ("enabled", 1, _BOOL, False, ""),
            ("local_ip", 2, _STRING, False, ""),
            ("device_name", 3, _STRING, False, ""),
            ("stats", 4, _MESSAGE, False, "VPNStats"),
        ),
    ),
    ("GetVPNRoutingTableRequest", ()),
    (
        "RouteEntry",
        (
            ("ip", 1, _UINT32, False, ""),
            ("name", 2, _STRING, False, ""),
            ("is_local", 3, _BOOL, False, ""),
        ),
    ),
    ("GetVPNRoutingTableResponse", (("routes", 1, _MESSAGE, True, "RouteEntry"),)),
)


@dataclass(frozen=True)
class Rpc:
    name: str
    request: str
    response: str

    @property
    def path(self) -> str:
        return f"/{SERVICE_FULL_NAME}/{self.name}"

    @property
    def request_class(self) -> type[Message]:
        return message_class(self.request)

    @property
    def response_class(self) -> type[Message]:
        return message_class(self.response)


CREATE_LOBBY = Rpc("CreateLobby", "CreateLobbyRequest", "CreateLobbyResponse")
JOIN_LOBBY = Rpc("JoinLobby", "JoinLobbyRequest", "JoinLobbyResponse")
LEAVE_LOBBY = Rpc("LeaveLobby", "LeaveLobbyRequest", "LeaveLobbyResponse")
GET_LOBBY_INFO = Rpc("GetLobbyInfo", "GetLobbyInfoRequest", "GetLobbyInfoResponse")
GET_FRIEND_LOBBIES = Rpc("GetFriendLobbies", "GetFriendLobbiesRequest", "GetFriendLobbiesResponse")
INVITE_FRIEND = Rpc("InviteFriend", "InviteFriendRequest", "InviteFriendResponse")
GET_VPN_STATUS = Rpc("GetVPNStatus", "GetVPNStatusRequest", "GetVPNStatusResponse")
GET_VPN_ROUTING_TABLE = Rpc(
    "GetVPNRoutingTable", "GetVPNRoutingTableRequest", "GetVPNRoutingTableResponse"
)

RPCS: tuple[Rpc, ...] = (
    CREATE_LOBBY,
    JOIN_LOBBY,
    LEAVE_LOBBY,
    GET_LOBBY_INFO,
    GET_FRIEND_LOBBIES,
    INVITE_FRIEND,
    GET_VPN_STATUS,
    GET_VPN_ROUTING_TABLE,
)


def _qualified(name: str) -> str:
    return f".{PROTO_PACKAGE}.{name}"


def build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(
        name=PROTO_FILE_NAME,
        package=PROTO_PACKAGE,
        syntax="proto3",
    )
    for msg_name, fields in _MESSAGE_LAYOUT:
        msg = fdp.message_type.add(name=msg_name)
        for field_name, number, field_type, repeated, type_name in fields:
            f = msg.field.add(
                name=field_name,
                number=number,
                type=field_type,
                label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
            )
            if type_name:
                f.type_name = _qualified(type_name)
    svc = fdp.service.add(name=SERVICE_NAME)
    for rpc in RPCS:
        svc.method.add(
            name=rpc.name,
            input_type=_qualified(rpc.request),
            output_type=_qualified(rpc.response),
        )
    return fdp


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(build_file_descriptor().SerializeToString())

_CLASSES: dict[str, type[Message]] = {}


def message_class(name: str) -> type[Message]:
    cls = _CLASSES.get(name)
    if cls is None:
        desc = _POOL.FindMessageTypeByName(f"{PROTO_PACKAGE}.{name}")
        cls = message_factory.GetMessageClass(desc)
        _CLASSES[name] = cls
    return cls


def new_message(name: str, /, **fields: Any) -> Message:
    return message_class(name)(**fields)

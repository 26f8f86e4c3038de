"""Wire schema and client stub of the bio-routing RIS gRPC API.

The message types of the ``bio.net``, ``bio.route`` and ``bio.ris``
packages are described as protobuf file descriptors and registered in
a private descriptor pool; the message classes are generated from the
pool at import time. Only the part of the API used by the looking
glass is described: ``GetNeighbors`` and the server streaming
``DumpRIB`` call.
"""

import ipaddress

import grpc
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.internal import enum_type_wrapper

_F = descriptor_pb2.FieldDescriptorProto

NET_PROTO_FILE = "bio/net/api/net.proto"
ROUTE_PROTO_FILE = "bio/route/api/route.proto"
RIS_PROTO_FILE = "bio/ris/api/ris.proto"

SERVICE_NAME = "bio.ris.RoutingInformationService"


def _field(
    name: str,
    number: int,
    field_type: int,
    type_name: str | None = None,
    repeated: bool = False,
) -> descriptor_pb2.FieldDescriptorProto:
    field = _F(
        name=name,
        number=number,
        type=field_type,  # type: ignore[arg-type]
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
    )
    if type_name is not None:
        field.type_name = type_name
    return field


def _enum(name: str, *values: str) -> descriptor_pb2.EnumDescriptorProto:
    return descriptor_pb2.EnumDescriptorProto(
        name=name,
        value=[
            descriptor_pb2.EnumValueDescriptorProto(name=value, number=number)
            for number, value in enumerate(values)
        ],
    )


def _message(
    name: str,
    *fields: descriptor_pb2.FieldDescriptorProto,
    enums: tuple[descriptor_pb2.EnumDescriptorProto, ...] = (),
) -> descriptor_pb2.DescriptorProto:
    return descriptor_pb2.DescriptorProto(
        name=name, field=list(fields), enum_type=list(enums)
    )


def _file(
    name: str,
    package: str,
    messages: list[descriptor_pb2.DescriptorProto],
    dependencies: tuple[str, ...] = (),
    services: tuple[descriptor_pb2.ServiceDescriptorProto, ...] = (),
) -> descriptor_pb2.FileDescriptorProto:
    return descriptor_pb2.FileDescriptorProto(
        name=name,
        package=package,
        syntax="proto3",
        dependency=list(dependencies),
        message_type=messages,
        service=list(services),
    )


NET_PROTO = _file(
    NET_PROTO_FILE,
    "bio.net",
    [
        _message(
            "Prefix",
            _field("address", 1, _F.TYPE_MESSAGE, ".bio.net.IP"),
            _field("length", 2, _F.TYPE_UINT32),
        ),
        _message(
            "IP",
            _field("higher", 1, _F.TYPE_UINT64),
            _field("lower", 2, _F.TYPE_UINT64),
            _field("version", 3, _F.TYPE_ENUM, ".bio.net.IP.Version"),
            enums=(_enum("Version", "IPv4", "IPv6"),),
        ),
    ],
)

ROUTE_PROTO = _file(
    ROUTE_PROTO_FILE,
    "bio.route",
    [
        _message(
            "Route",
            _field("pfx", 1, _F.TYPE_MESSAGE, ".bio.net.Prefix"),
            _field("paths", 2, _F.TYPE_MESSAGE, ".bio.route.Path", repeated=True),
        ),
        _message(
            "Path",
            _field("type", 1, _F.TYPE_ENUM, ".bio.route.Path.Type"),
            _field("static_path", 2, _F.TYPE_MESSAGE, ".bio.route.StaticPath"),
            _field("bgp_path", 3, _F.TYPE_MESSAGE, ".bio.route.BGPPath"),
            enums=(_enum("Type", "Static", "BGP"),),
        ),
        _message(
            "StaticPath",
            _field("next_hop", 1, _F.TYPE_MESSAGE, ".bio.net.IP"),
        ),
        _message(
            "BGPPath",
            _field("path_identifier", 1, _F.TYPE_UINT32),
            _field("next_hop", 2, _F.TYPE_MESSAGE, ".bio.net.IP"),
            _field("local_pref", 3, _F.TYPE_UINT32),
            _field("as_path", 4, _F.TYPE_MESSAGE, ".bio.route.ASPathSegment", repeated=True),
            _field("origin", 5, _F.TYPE_UINT32),
            _field("med", 6, _F.TYPE_UINT32),
            _field("ebgp", 7, _F.TYPE_BOOL),
            _field("bgp_identifier", 8, _F.TYPE_UINT32),
            _field("source", 9, _F.TYPE_MESSAGE, ".bio.net.IP"),
            _field("communities", 10, _F.TYPE_UINT32, repeated=True),
            _field(
                "large_communities",
                11,
                _F.TYPE_MESSAGE,
                ".bio.route.LargeCommunity",
                repeated=True,
            ),
        ),
        _message(
            "ASPathSegment",
            _field("as_sequence", 1, _F.TYPE_BOOL),
            _field("asns", 2, _F.TYPE_UINT32, repeated=True),
        ),
        _message(
            "LargeCommunity",
            _field("global_administrator", 1, _F.TYPE_UINT32),
            _field("data_part1", 2, _F.TYPE_UINT32),
            _field("data_part2", 3, _F.TYPE_UINT32),
        ),
    ],
    dependencies=(NET_PROTO_FILE,),
)

RIS_PROTO = _file(
    RIS_PROTO_FILE,
    "bio.ris",
    [
        _message(
            "GetNeighborsRequest",
            _field("router", 1, _F.TYPE_STRING),
            _field("vrf_id", 2, _F.TYPE_UINT64),
        ),
        _message(
            "GetNeighborsResponse",
            _field("neighbors", 1, _F.TYPE_MESSAGE, ".bio.ris.Neighbor", repeated=True),
        ),
        _message(
            "Neighbor",
            _field("neighbor_address", 1, _F.TYPE_MESSAGE, ".bio.net.IP"),
            _field("peer_asn", 2, _F.TYPE_UINT32),
            _field("status", 3, _F.TYPE_ENUM, ".bio.ris.Neighbor.Status"),
            _field("description", 4, _F.TYPE_STRING),
            _field("stats", 5, _F.TYPE_MESSAGE, ".bio.ris.NeighborStats"),
            _field("established_since", 6, _F.TYPE_UINT64),
            enums=(
                _enum(
                    "Status",
                    "Idle",
                    "Connect",
                    "Active",
                    "OpenSent",
                    "OpenConfirm",
                    "Established",
                ),
            ),
        ),
        _message(
            "NeighborStats",
            _field("routes_received", 1, _F.TYPE_UINT64),
            _field("routes_exported", 2, _F.TYPE_UINT64),
        ),
        _message(
            "DumpRIBRequest",
            _field("router", 1, _F.TYPE_STRING),
            _field("vrf_id", 2, _F.TYPE_UINT64),
            _field("afisafi", 3, _F.TYPE_ENUM, ".bio.ris.DumpRIBRequest.AFISAFI"),
            _field("neighbor", 4, _F.TYPE_STRING),
            enums=(_enum("AFISAFI", "IPv4Unicast", "IPv6Unicast"),),
        ),
        _message(
            "DumpRIBReply",
            _field("route", 1, _F.TYPE_MESSAGE, ".bio.route.Route"),
        ),
    ],
    dependencies=(NET_PROTO_FILE, ROUTE_PROTO_FILE),
    services=(
        descriptor_pb2.ServiceDescriptorProto(
            name="RoutingInformationService",
            method=[
                descriptor_pb2.MethodDescriptorProto(
                    name="GetNeighbors",
                    input_type=".bio.ris.GetNeighborsRequest",
                    output_type=".bio.ris.GetNeighborsResponse",
                ),
                descriptor_pb2.MethodDescriptorProto(
                    name="DumpRIB",
                    input_type=".bio.ris.DumpRIBRequest",
                    output_type=".bio.ris.DumpRIBReply",
                    server_streaming=True,
                ),
            ],
        ),
    ),
)

pool = descriptor_pool.DescriptorPool()
for _file_proto in (NET_PROTO, ROUTE_PROTO, RIS_PROTO):
    pool.AddSerializedFile(_file_proto.SerializeToString())


def _message_class(full_name: str) -> type:
    return message_factory.GetMessageClass(pool.FindMessageTypeByName(full_name))


def _enum_type(full_name: str) -> enum_type_wrapper.EnumTypeWrapper:
    return enum_type_wrapper.EnumTypeWrapper(pool.FindEnumTypeByName(full_name))


# bio.net
Prefix = _message_class("bio.net.Prefix")
IP = _message_class("bio.net.IP")

# bio.route
Route = _message_class("bio.route.Route")
Path = _message_class("bio.route.Path")
StaticPath = _message_class("bio.route.StaticPath")
BGPPath = _message_class("bio.route.BGPPath")
ASPathSegment = _message_class("bio.route.ASPathSegment")
LargeCommunity = _message_class("bio.route.LargeCommunity")

# bio.ris
GetNeighborsRequest = _message_class("bio.ris.GetNeighborsRequest")
GetNeighborsResponse = _message_class("bio.ris.GetNeighborsResponse")
Neighbor = _message_class("bio.ris.Neighbor")
NeighborStats = _message_class("bio.ris.NeighborStats")
DumpRIBRequest = _message_class("bio.ris.DumpRIBRequest")
DumpRIBReply = _message_class("bio.ris.DumpRIBReply")

IP_VERSION = _enum_type("bio.net.IP.Version")
IPV4 = IP_VERSION.Value("IPv4")
IPV6 = IP_VERSION.Value("IPv6")

PATH_TYPE = _enum_type("bio.route.Path.Type")
PATH_STATIC = PATH_TYPE.Value("Static")
PATH_BGP = PATH_TYPE.Value("BGP")

AFISAFI = _enum_type("bio.ris.DumpRIBRequest.AFISAFI")
IPV4_UNICAST = AFISAFI.Value("IPv4Unicast")
IPV6_UNICAST = AFISAFI.Value("IPv6Unicast")

NEIGHBOR_STATUS = _enum_type("bio.ris.Neighbor.Status")


class RoutingInformationServiceStub:
    """Client stub for the RoutingInformationService.

    Example:
        channel = grpc.aio.insecure_channel("ris.example.net:4321")
        stub = RoutingInformationServiceStub(channel)
        response = await stub.GetNeighbors(GetNeighborsRequest(router="rs1"))
    """

    def __init__(self, channel: grpc.aio.Channel):
        self.GetNeighbors = channel.unary_unary(
            f"/{SERVICE_NAME}/GetNeighbors",
            request_serializer=GetNeighborsRequest.SerializeToString,
            response_deserializer=GetNeighborsResponse.FromString,
        )
        self.DumpRIB = channel.unary_stream(
            f"/{SERVICE_NAME}/DumpRIB",
            request_serializer=DumpRIBRequest.SerializeToString,
            response_deserializer=DumpRIBReply.FromString,
        )


def ip_to_str(ip) -> str:
    """Render a ``bio.net.IP`` as address string."""
    if ip.version == IPV6:
        return str(ipaddress.IPv6Address((ip.higher << 64) | ip.lower))
    return str(ipaddress.IPv4Address(ip.lower & 0xFFFFFFFF))


def ip_from_str(address: str):
    """Build a ``bio.net.IP`` from an address string."""
    ip = ipaddress.ip_address(address)
    if ip.version == 6:
        value = int(ip)
        return IP(higher=value >> 64, lower=value & 0xFFFFFFFFFFFFFFFF, version=IPV6)
    return IP(higher=0, lower=int(ip), version=IPV4)


def prefix_to_str(pfx) -> str:
    """Render a ``bio.net.Prefix`` in CIDR notation."""
    return f"{ip_to_str(pfx.address)}/{pfx.length}"


def prefix_from_str(prefix: str):
    """Build a ``bio.net.Prefix`` from CIDR notation."""
    address, _, length = prefix.partition("/")
    return Prefix(address=ip_from_str(address), length=int(length))

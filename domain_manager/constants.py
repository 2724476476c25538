from enum import StrEnum
from typing import Final, Literal, TypeAlias

PLUGIN_NAME: Final[str] = "Domain Manager"

DEFAULT_BASE_PATH: Final[str] = "(none)"
DEFAULT_STAGE: Final[str] = "$default"
RESERVED_BASE_PATHS: Final[tuple[str, ...]] = ("ping", "sping")

# Edge-optimized domains are always served from CloudFront, whose alias zone is fixed.
# getDomainName sometimes omits it for edge endpoints.
# https://docs.aws.amazon.com/general/latest/gr/apigateway.html
DEFAULT_EDGE_HOSTED_ZONE_ID: Final[str] = "Z2FDTNDATAQYW2"
DEFAULT_SECURITY_POLICY: Final[str] = "TLS_1_2"

# CloudFront only accepts certificates issued in us-east-1
EDGE_CERTIFICATE_REGION: Final[str] = "us-east-1"
CERTIFICATE_STATUSES: Final[tuple[str, ...]] = ("PENDING_VALIDATION", "ISSUED", "INACTIVE")

DEFAULT_WEIGHT: Final[int] = 200
DEFAULT_AUTO_DOMAIN_WAIT_FOR: Final[int] = 120
AUTO_DOMAIN_POLL_INTERVAL: Final[int] = 3


class EndpointType(StrEnum):
    EDGE = "EDGE"
    REGIONAL = "REGIONAL"
    PRIVATE = "PRIVATE"


class ApiType(StrEnum):
    REST = "REST"
    HTTP = "HTTP"
    WEBSOCKET = "WEBSOCKET"


class SecurityPolicy(StrEnum):
    TLS_1_0 = "TLS_1_0"
    TLS_1_2 = "TLS_1_2"
    TLS_1_3 = "TLS_1_3"


class RoutingPolicy(StrEnum):
    SIMPLE = "simple"
    LATENCY = "latency"
    WEIGHTED = "weighted"


class GatewayVersion(StrEnum):
    V1 = "v1"
    V2 = "v2"


ChangeAction: TypeAlias = Literal["UPSERT", "DELETE"]

# Logical ids the deployment tool gives each API type in the compiled template
CF_RESOURCE_IDS: Final[dict[ApiType, str]] = {
    ApiType.REST: "ApiGatewayRestApi",
    ApiType.HTTP: "HttpApi",
    ApiType.WEBSOCKET: "WebsocketsApi",
}

# provider.apiGateway keys that point at an already existing API
GATEWAY_API_ID_KEYS: Final[dict[ApiType, str]] = {
    ApiType.REST: "restApiId",
    ApiType.WEBSOCKET: "websocketApiId",
}

# Template output key suffix per API type, REST keeps the unsuffixed names
OUTPUT_KEY_SUFFIXES: Final[dict[ApiType, str]] = {
    ApiType.REST: "",
    ApiType.HTTP: "Http",
    ApiType.WEBSOCKET: "Websocket",
}

CF_IMPORT_VALUE: Final[str] = "Fn::ImportValue"
CF_REF: Final[str] = "Ref"

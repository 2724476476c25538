from .base import GatewayAdapter
from .selection import ApiGateways, select_gateway_version, select_update_version
from .v1 import ApiGatewayV1Adapter
from .v2 import ApiGatewayV2Adapter

__all__ = [
    "ApiGatewayV1Adapter",
    "ApiGatewayV2Adapter",
    "ApiGateways",
    "GatewayAdapter",
    "select_gateway_version",
    "select_update_version",
]

import pytest

from domain_manager.aws.api_gateway import (
    ApiGateways,
    ApiGatewayV1Adapter,
    ApiGatewayV2Adapter,
    select_gateway_version,
    select_update_version,
)
from domain_manager.constants import EndpointType, GatewayVersion, SecurityPolicy
from domain_manager.domain import DomainInfo


@pytest.mark.parametrize(
    ("endpoint_type", "security_policy", "expected"),
    [
        (EndpointType.EDGE, SecurityPolicy.TLS_1_2, GatewayVersion.V1),
        (EndpointType.EDGE, SecurityPolicy.TLS_1_0, GatewayVersion.V1),
        (EndpointType.PRIVATE, SecurityPolicy.TLS_1_2, GatewayVersion.V1),
        (EndpointType.REGIONAL, SecurityPolicy.TLS_1_0, GatewayVersion.V1),
        (EndpointType.REGIONAL, SecurityPolicy.TLS_1_2, GatewayVersion.V2),
        (EndpointType.REGIONAL, SecurityPolicy.TLS_1_3, GatewayVersion.V2),
    ],
)
def test_select_gateway_version(endpoint_type, security_policy, expected):
    assert select_gateway_version(endpoint_type, security_policy) == expected


def test_update_version_follows_remote_security_policy(make_domain):
    domain = make_domain(endpointType="REGIONAL", securityPolicy="tls_1_2")
    domain.domain_info = DomainInfo(domain_name="d-abc", security_policy="TLS_1_0")

    assert select_update_version(domain) == GatewayVersion.V1


def test_update_version_without_remote_domain_uses_config(make_domain):
    domain = make_domain(endpointType="REGIONAL", securityPolicy="tls_1_2")

    assert select_update_version(domain) == GatewayVersion.V2


def test_adapters_are_created_once_per_version(clients, deployment):
    gateways = ApiGateways(clients, deployment)

    v1 = gateways.adapter(GatewayVersion.V1)
    v2 = gateways.adapter(GatewayVersion.V2)

    assert isinstance(v1, ApiGatewayV1Adapter)
    assert isinstance(v2, ApiGatewayV2Adapter)
    assert gateways.adapter(GatewayVersion.V1) is v1
    assert gateways.adapter(GatewayVersion.V2) is v2


def test_for_domain_and_for_update(clients, deployment, make_domain):
    gateways = ApiGateways(clients, deployment)
    domain = make_domain(endpointType="REGIONAL")
    domain.domain_info = DomainInfo(domain_name="d-abc", security_policy="TLS_1_0")

    assert isinstance(gateways.for_domain(domain), ApiGatewayV2Adapter)
    assert isinstance(gateways.for_update(domain), ApiGatewayV1Adapter)

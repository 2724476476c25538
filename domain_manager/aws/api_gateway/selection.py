from domain_manager.aws.api_gateway.base import GatewayAdapter
from domain_manager.aws.api_gateway.v1 import ApiGatewayV1Adapter
from domain_manager.aws.api_gateway.v2 import ApiGatewayV2Adapter
from domain_manager.aws.clients import AwsClients
from domain_manager.config import DeploymentConfig
from domain_manager.constants import EndpointType, GatewayVersion, SecurityPolicy
from domain_manager.domain import Domain


def select_gateway_version(
    endpoint_type: EndpointType, security_policy: SecurityPolicy | str
) -> GatewayVersion:
    """API version that can manage a domain with the given endpoint type and policy.

    apigatewayv2 supports neither edge nor private endpoints, nor TLS 1.0.
    """
    if endpoint_type in (EndpointType.EDGE, EndpointType.PRIVATE):
        return GatewayVersion.V1
    if security_policy == SecurityPolicy.TLS_1_0:
        return GatewayVersion.V1
    return GatewayVersion.V2


def select_update_version(domain: Domain) -> GatewayVersion:
    """Like ``select_gateway_version``, but with the policy the remote domain reports.

    A domain created with TLS 1.0 stays on v1 even after its config moves to a newer
    policy, since existing domains are never updated in place.
    """
    observed_policy = (
        domain.domain_info.security_policy
        if domain.domain_info
        else domain.config.security_policy
    )
    return select_gateway_version(domain.config.endpoint_type, observed_policy)


class ApiGateways:
    """Holds one adapter per API version and hands out the right one per domain."""

    def __init__(self, clients: AwsClients, deployment: DeploymentConfig) -> None:
        self._clients = clients
        self._deployment = deployment
        self._adapters: dict[GatewayVersion, GatewayAdapter] = {}

    def adapter(self, version: GatewayVersion) -> GatewayAdapter:
        if version not in self._adapters:
            if version == GatewayVersion.V1:
                self._adapters[version] = ApiGatewayV1Adapter(
                    self._clients.api_gateway_v1, self._deployment
                )
            else:
                self._adapters[version] = ApiGatewayV2Adapter(
                    self._clients.api_gateway_v2, self._deployment
                )
        return self._adapters[version]

    def for_domain(self, domain: Domain) -> GatewayAdapter:
        config = domain.config
        return self.adapter(select_gateway_version(config.endpoint_type, config.security_policy))

    def for_update(self, domain: Domain) -> GatewayAdapter:
        return self.adapter(select_update_version(domain))

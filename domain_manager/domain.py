import logging
from dataclasses import dataclass, field
from typing import Any, TypedDict, TypeVar, final
from urllib.parse import urlparse

from domain_manager.config import DeploymentConfig
from domain_manager.constants import (
    DEFAULT_AUTO_DOMAIN_WAIT_FOR,
    DEFAULT_BASE_PATH,
    DEFAULT_EDGE_HOSTED_ZONE_ID,
    DEFAULT_SECURITY_POLICY,
    DEFAULT_WEIGHT,
    RESERVED_BASE_PATHS,
    ApiType,
    EndpointType,
    RoutingPolicy,
    SecurityPolicy,
)
from domain_manager.exceptions import ConfigError
from domain_manager.utils import evaluate_boolean

logger = logging.getLogger(__name__)


class Route53ParamsDict(TypedDict, total=False):
    routingPolicy: str
    setIdentifier: str
    weight: int
    healthCheckId: str


class DomainConfigDict(TypedDict, total=False):
    """Raw per-domain configuration, keyed the way users write it in the manifest."""

    domainName: str
    basePath: str | None
    stage: str
    enabled: bool | str
    certificateName: str
    certificateArn: str
    createRoute53Record: bool | str
    createRoute53IPv6Record: bool | str
    route53Profile: str
    route53Region: str
    endpointType: str
    apiType: str
    securityPolicy: str
    tlsTruststoreUri: str
    tlsTruststoreVersion: str
    hostedZoneId: str
    hostedZonePrivate: bool | str
    splitHorizonDns: bool | str
    autoDomain: bool | str
    autoDomainWaitFor: int | str
    allowPathMatching: bool | str
    preserveExternalPathMappings: bool | str
    route53Params: Route53ParamsDict


@final
@dataclass(frozen=True, kw_only=True)
class Route53Params:
    routing_policy: RoutingPolicy = RoutingPolicy.SIMPLE
    set_identifier: str | None = None
    weight: int = DEFAULT_WEIGHT
    health_check_id: str | None = None


@final
@dataclass(frozen=True, kw_only=True)
class DomainConfig:
    """Validated settings of one custom domain.

    Use ``DomainConfig.from_dict`` to build one from raw user config; the constructor
    itself only checks cross-field constraints.
    """

    given_domain_name: str
    base_path: str = DEFAULT_BASE_PATH
    stage: str | None = None
    config_stage: str | None = None
    enabled: bool = True
    endpoint_type: EndpointType = EndpointType.EDGE
    api_type: ApiType = ApiType.REST
    security_policy: SecurityPolicy = SecurityPolicy.TLS_1_2
    certificate_arn: str | None = None
    certificate_name: str | None = None
    create_route53_record: bool = True
    create_route53_ipv6_record: bool = True
    route53_profile: str | None = None
    route53_region: str | None = None
    hosted_zone_id: str | None = None
    hosted_zone_private: bool | None = None
    split_horizon_dns: bool = False
    route53_params: Route53Params = field(default_factory=Route53Params)
    tls_truststore_uri: str | None = None
    tls_truststore_version: str | None = None
    auto_domain: bool = False
    auto_domain_wait_for: int = DEFAULT_AUTO_DOMAIN_WAIT_FOR
    allow_path_matching: bool = False
    preserve_external_path_mappings: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.given_domain_name, str) or not self.given_domain_name.strip():
            raise ConfigError("domainName is required and must be a non-empty string")

        is_edge = self.endpoint_type == EndpointType.EDGE
        if self.api_type != ApiType.REST and self.endpoint_type != EndpointType.REGIONAL:
            raise ConfigError(
                f"'{self.endpoint_type.lower()}' endpointType is not compatible with "
                f"{self.api_type} APIs"
            )

        if self.tls_truststore_uri:
            if is_edge:
                raise ConfigError(
                    f"{self.endpoint_type} APIs do not support mutual TLS, remove "
                    "tlsTruststoreUri or change to a regional API."
                )
            _validate_s3_uri(self.tls_truststore_uri)

        if self.route53_params.routing_policy != RoutingPolicy.SIMPLE and is_edge:
            raise ConfigError(
                f"{self.route53_params.routing_policy} routing is not intended to be used with "
                "edge endpoints. Use a regional endpoint instead."
            )

    @classmethod
    def from_dict(
        cls, config: DomainConfigDict, deployment: DeploymentConfig | None = None
    ) -> "DomainConfig":
        """Normalize raw user config into a ``DomainConfig``.

        Enum values are matched case-insensitively, boolean-ish values go through
        ``evaluate_boolean`` and the stage falls back to the deployment stage.

        Raises:
            ConfigError: If any value is invalid or the combination is unsupported.
        """
        deployment_stage = deployment.base_stage if deployment else None
        hosted_zone_id = config.get("hostedZoneId")
        hosted_zone_private = evaluate_boolean(config.get("hostedZonePrivate"), None)
        split_horizon_dns = (
            not hosted_zone_id
            and hosted_zone_private is None
            and evaluate_boolean(config.get("splitHorizonDns"), False)
        )

        return cls(
            given_domain_name=config.get("domainName"),
            base_path=_normalize_base_path(config.get("basePath")),
            stage=config.get("stage") or deployment_stage,
            config_stage=config.get("stage"),
            enabled=evaluate_boolean(config.get("enabled"), True),
            endpoint_type=_parse_enum(
                EndpointType,
                config.get("endpointType"),
                EndpointType.EDGE,
                "is not supported endpointType, use EDGE, REGIONAL or PRIVATE.",
            ),
            api_type=_parse_enum(
                ApiType,
                config.get("apiType"),
                ApiType.REST,
                "is not supported api type, use REST, HTTP or WEBSOCKET.",
            ),
            security_policy=_parse_enum(
                SecurityPolicy,
                config.get("securityPolicy"),
                SecurityPolicy.TLS_1_2,
                "is not a supported securityPolicy, use tls_1_0, tls_1_2 or tls_1_3.",
            ),
            certificate_arn=config.get("certificateArn"),
            certificate_name=config.get("certificateName"),
            create_route53_record=evaluate_boolean(config.get("createRoute53Record"), True),
            create_route53_ipv6_record=evaluate_boolean(
                config.get("createRoute53IPv6Record"), True
            ),
            route53_profile=config.get("route53Profile"),
            route53_region=config.get("route53Region"),
            hosted_zone_id=hosted_zone_id,
            hosted_zone_private=hosted_zone_private,
            split_horizon_dns=bool(split_horizon_dns),
            route53_params=_parse_route53_params(config.get("route53Params")),
            tls_truststore_uri=config.get("tlsTruststoreUri"),
            tls_truststore_version=config.get("tlsTruststoreVersion"),
            auto_domain=evaluate_boolean(config.get("autoDomain"), False),
            auto_domain_wait_for=_parse_wait_for(config.get("autoDomainWaitFor")),
            allow_path_matching=evaluate_boolean(config.get("allowPathMatching"), False),
            preserve_external_path_mappings=evaluate_boolean(
                config.get("preserveExternalPathMappings"), False
            ),
        )


def _normalize_base_path(base_path: str | None) -> str:
    if not base_path or not str(base_path).strip():
        return DEFAULT_BASE_PATH
    if base_path in RESERVED_BASE_PATHS:
        logger.warning(
            "The `/ping` and `/sping` paths are reserved for the service health check. "
            "Please take a look at "
            "https://docs.aws.amazon.com/apigateway/latest/developerguide/api-gateway-known-issues.html"  # noqa: E501
        )
    return base_path


E = TypeVar("E", EndpointType, ApiType, SecurityPolicy)


def _parse_enum(
    enum_type: type[E], value: str | None, default: E, error_suffix: str
) -> E:
    if value is None:
        return default
    try:
        return enum_type(str(value).upper())
    except ValueError:
        raise ConfigError(f"{value} {error_suffix}") from None


def _parse_route53_params(params: Route53ParamsDict | None) -> Route53Params:
    params = params or {}
    routing_policy = str(params.get("routingPolicy") or RoutingPolicy.SIMPLE).lower()
    try:
        policy = RoutingPolicy(routing_policy)
    except ValueError:
        raise ConfigError(
            f"{routing_policy} is not a supported routing policy, use simple, latency, "
            "or weighted."
        ) from None

    weight = params.get("weight")
    return Route53Params(
        routing_policy=policy,
        set_identifier=params.get("setIdentifier"),
        weight=DEFAULT_WEIGHT if weight is None else int(weight),
        health_check_id=params.get("healthCheckId"),
    )


def _parse_wait_for(value: int | str | None) -> int:
    try:
        return int(value) or DEFAULT_AUTO_DOMAIN_WAIT_FOR
    except (TypeError, ValueError):
        return DEFAULT_AUTO_DOMAIN_WAIT_FOR


def _validate_s3_uri(uri: str) -> None:
    parsed = urlparse(uri)
    if parsed.scheme != "s3" or not parsed.netloc or not parsed.path.lstrip("/"):
        raise ConfigError(
            f"{uri} is not a valid s3 uri, try something like s3://bucket-name/key-name."
        )


@final
@dataclass(frozen=True)
class DomainInfo:
    """Remote state of a custom domain, as returned by either gateway API version."""

    domain_name: str
    hosted_zone_id: str = DEFAULT_EDGE_HOSTED_ZONE_ID
    security_policy: str = DEFAULT_SECURITY_POLICY
    domain_name_id: str = ""

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "DomainInfo":
        # v1 responses are camelCase, v2 responses nest everything in DomainNameConfigurations
        configurations = data.get("DomainNameConfigurations") or [{}]
        v2 = configurations[0]
        return cls(
            domain_name=(
                data.get("distributionDomainName")
                or data.get("regionalDomainName")
                or v2.get("ApiGatewayDomainName")
                or data.get("DomainName")
                or data.get("domainName")
            ),
            hosted_zone_id=(
                data.get("distributionHostedZoneId")
                or data.get("regionalHostedZoneId")
                or v2.get("HostedZoneId")
                or DEFAULT_EDGE_HOSTED_ZONE_ID
            ),
            security_policy=(
                data.get("securityPolicy") or v2.get("SecurityPolicy") or DEFAULT_SECURITY_POLICY
            ),
            domain_name_id=data.get("domainNameId") or data.get("DomainNameId") or "",
        )


@final
@dataclass(frozen=True)
class ApiMapping:
    """A base path (v1) or API (v2) mapping on a custom domain.

    v1 base path mappings have no id of their own; they are addressed by base path.
    """

    api_id: str
    base_path: str
    stage: str | None
    api_mapping_id: str | None = None


@dataclass
class Domain:
    """One unit of reconciliation work: a validated config plus remote lookups.

    ``domain_info`` stays ``None`` until fetched, and also when the domain does not exist
    remotely yet, which is what triggers creation.
    """

    config: DomainConfig
    domain_info: DomainInfo | None = None
    api_id: str | None = None
    api_mapping: ApiMapping | None = None
    certificate_arn: str | None = None

    def __post_init__(self) -> None:
        if self.certificate_arn is None:
            self.certificate_arn = self.config.certificate_arn

    @property
    def name(self) -> str:
        return self.config.given_domain_name

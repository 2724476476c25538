import logging
from typing import Any

from botocore.exceptions import ClientError

from domain_manager.aws.api_gateway.base import is_not_found
from domain_manager.aws.retry import get_all_pages, throttled_call
from domain_manager.config import DeploymentConfig
from domain_manager.constants import DEFAULT_BASE_PATH, DEFAULT_STAGE, ApiType, EndpointType
from domain_manager.domain import ApiMapping, Domain, DomainInfo
from domain_manager.exceptions import (
    DomainCreationError,
    DomainDeletionError,
    DomainLookupError,
    MappingCreationError,
    MappingLookupError,
    MappingUpdateError,
)

logger = logging.getLogger(__name__)


def _mapping_key(base_path: str) -> str:
    # apigatewayv2 expresses the root mapping as an empty key
    return "" if base_path == DEFAULT_BASE_PATH else base_path


def _mapping_stage(domain: Domain) -> str | None:
    if domain.config.api_type == ApiType.HTTP:
        return DEFAULT_STAGE
    return domain.config.stage


class ApiGatewayV2Adapter:
    """Custom domains through the ``apigatewayv2`` API, regional endpoints only."""

    def __init__(self, client: Any, deployment: DeploymentConfig) -> None:
        self._client = client
        self._deployment = deployment

    async def create_custom_domain(self, domain: Domain) -> DomainInfo:
        config = domain.config
        params: dict[str, Any] = {
            "DomainName": config.given_domain_name,
            "DomainNameConfigurations": [
                {
                    "CertificateArn": domain.certificate_arn,
                    "EndpointType": config.endpoint_type.value,
                    "SecurityPolicy": config.security_policy.value,
                }
            ],
            "Tags": self._deployment.merged_tags,
        }
        if config.endpoint_type == EndpointType.REGIONAL and config.tls_truststore_uri:
            mutual_tls = {"TruststoreUri": config.tls_truststore_uri}
            if config.tls_truststore_version:
                mutual_tls["TruststoreVersion"] = config.tls_truststore_version
            params["MutualTlsAuthentication"] = mutual_tls

        try:
            response = await throttled_call(self._client.create_domain_name, **params)
        except ClientError as e:
            raise DomainCreationError(
                f"V2 - Failed to create custom domain '{domain.name}':\n{e}"
            ) from e
        return DomainInfo.from_response(response)

    async def get_custom_domain(self, domain: Domain) -> DomainInfo | None:
        try:
            response = await throttled_call(self._client.get_domain_name, DomainName=domain.name)
        except ClientError as e:
            if is_not_found(e):
                logger.info("V2 - '%s' does not exist.", domain.name)
                return None
            raise DomainLookupError(
                f"V2 - Unable to fetch information about '{domain.name}':\n{e}"
            ) from e
        return DomainInfo.from_response(response)

    async def delete_custom_domain(self, domain: Domain) -> None:
        try:
            await throttled_call(self._client.delete_domain_name, DomainName=domain.name)
        except ClientError as e:
            raise DomainDeletionError(
                f"V2 - Failed to delete custom domain '{domain.name}':\n{e}"
            ) from e

    async def create_base_path_mapping(self, domain: Domain) -> None:
        config = domain.config
        stage = _mapping_stage(domain)
        if config.api_type == ApiType.HTTP and config.config_stage not in (None, DEFAULT_STAGE):
            logger.warning(
                "HTTP APIs are always mapped to the '%s' stage, ignoring stage '%s'.",
                DEFAULT_STAGE,
                config.config_stage,
            )
        try:
            await throttled_call(
                self._client.create_api_mapping,
                ApiId=domain.api_id,
                ApiMappingKey=_mapping_key(config.base_path),
                DomainName=domain.name,
                Stage=stage,
            )
        except ClientError as e:
            raise MappingCreationError(
                f"V2 - Unable to create base path mapping for '{domain.name}':\n{e}"
            ) from e
        logger.info("V2 - Created API mapping '%s' for '%s'", config.base_path, domain.name)

    async def get_base_path_mappings(self, domain: Domain) -> list[ApiMapping]:
        try:
            items = await get_all_pages(
                self._client.get_api_mappings,
                "Items",
                "NextToken",
                "NextToken",
                DomainName=domain.name,
            )
        except ClientError as e:
            raise MappingLookupError(
                f"V2 - Make sure the '{domain.name}' exists. Unable to get API Mappings:\n{e}"
            ) from e
        return [
            ApiMapping(
                api_id=item.get("ApiId"),
                base_path=item.get("ApiMappingKey") or DEFAULT_BASE_PATH,
                stage=item.get("Stage"),
                api_mapping_id=item.get("ApiMappingId"),
            )
            for item in items
        ]

    async def update_base_path_mapping(self, domain: Domain) -> None:
        config = domain.config
        if not domain.api_mapping.api_mapping_id:
            raise MappingUpdateError(
                f"V2 - Unable to update base path mapping for '{domain.name}': "
                "the mapping has no ApiMappingId"
            )
        try:
            await throttled_call(
                self._client.update_api_mapping,
                ApiId=domain.api_id,
                ApiMappingId=domain.api_mapping.api_mapping_id,
                ApiMappingKey=_mapping_key(config.base_path),
                DomainName=domain.name,
                Stage=_mapping_stage(domain),
            )
        except ClientError as e:
            raise MappingUpdateError(
                f"V2 - Unable to update base path mapping for '{domain.name}':\n{e}"
            ) from e
        logger.info("V2 - Updated API mapping to '%s' for '%s'", config.base_path, domain.name)

    async def delete_base_path_mapping(self, domain: Domain) -> None:
        mapping_id = domain.api_mapping.api_mapping_id
        try:
            await throttled_call(
                self._client.delete_api_mapping, ApiMappingId=mapping_id, DomainName=domain.name
            )
        except ClientError as e:
            logger.warning(
                "V2 - Unable to remove base path mapping for '%s':\n%s", domain.name, e
            )
            return
        logger.info("V2 - Removed API Mapping with id: '%s'", mapping_id)

import logging
from typing import Any

from botocore.exceptions import ClientError

from domain_manager.aws.api_gateway.base import is_not_found
from domain_manager.aws.retry import get_all_pages, throttled_call
from domain_manager.config import DeploymentConfig
from domain_manager.constants import DEFAULT_BASE_PATH, EndpointType
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


class ApiGatewayV1Adapter:
    """Custom domains through the ``apigateway`` API.

    Supports every endpoint type and TLS 1.0. Base path mappings have no id here, they
    are addressed by their base path.
    """

    def __init__(self, client: Any, deployment: DeploymentConfig) -> None:
        self._client = client
        self._deployment = deployment

    async def _domain_name_id(self, domain: Domain) -> str | None:
        # Private custom domains must be addressed with their domainNameId
        if domain.config.endpoint_type != EndpointType.PRIVATE:
            return None
        if domain.domain_info and domain.domain_info.domain_name_id:
            return domain.domain_info.domain_name_id

        try:
            items = await get_all_pages(
                self._client.get_domain_names, "items", "position", "position"
            )
        except ClientError as e:
            logger.warning("V1 - Unable to list domain names to find domainNameId: %s", e)
            return None

        for item in items:
            types = item.get("endpointConfiguration", {}).get("types") or []
            if item.get("domainName") == domain.name and EndpointType.PRIVATE in types:
                return item.get("domainNameId")
        return None

    async def _domain_params(self, domain: Domain) -> dict[str, Any]:
        params = {"domainName": domain.name}
        domain_name_id = await self._domain_name_id(domain)
        if domain_name_id:
            params["domainNameId"] = domain_name_id
        return params

    async def create_custom_domain(self, domain: Domain) -> DomainInfo:
        config = domain.config
        params: dict[str, Any] = {
            "domainName": config.given_domain_name,
            "endpointConfiguration": {"types": [config.endpoint_type.value]},
            "securityPolicy": config.security_policy.value,
            "tags": self._deployment.merged_tags,
        }
        if config.endpoint_type in (EndpointType.EDGE, EndpointType.PRIVATE):
            params["certificateArn"] = domain.certificate_arn
        else:
            params["regionalCertificateArn"] = domain.certificate_arn
            if config.tls_truststore_uri:
                mutual_tls = {"truststoreUri": config.tls_truststore_uri}
                if config.tls_truststore_version:
                    mutual_tls["truststoreVersion"] = config.tls_truststore_version
                params["mutualTlsAuthentication"] = mutual_tls

        try:
            response = await throttled_call(self._client.create_domain_name, **params)
        except ClientError as e:
            raise DomainCreationError(
                f"V1 - Failed to create custom domain '{domain.name}':\n{e}"
            ) from e
        return DomainInfo.from_response(response)

    async def get_custom_domain(self, domain: Domain) -> DomainInfo | None:
        params = await self._domain_params(domain)
        if domain.config.endpoint_type == EndpointType.PRIVATE and "domainNameId" not in params:
            logger.info("V1 - '%s' does not exist or is not a private domain.", domain.name)
            return None

        try:
            response = await throttled_call(self._client.get_domain_name, **params)
        except ClientError as e:
            if is_not_found(e):
                logger.info("V1 - '%s' does not exist.", domain.name)
                return None
            raise DomainLookupError(
                f"V1 - Unable to fetch information about '{domain.name}':\n{e}"
            ) from e
        return DomainInfo.from_response(response)

    async def delete_custom_domain(self, domain: Domain) -> None:
        try:
            params = await self._domain_params(domain)
            await throttled_call(self._client.delete_domain_name, **params)
        except ClientError as e:
            raise DomainDeletionError(
                f"V1 - Failed to delete custom domain '{domain.name}':\n{e}"
            ) from e

    async def create_base_path_mapping(self, domain: Domain) -> None:
        config = domain.config
        params = await self._domain_params(domain)
        try:
            await throttled_call(
                self._client.create_base_path_mapping,
                basePath=config.base_path,
                restApiId=domain.api_id,
                stage=config.stage,
                **params,
            )
        except ClientError as e:
            raise MappingCreationError(
                f"V1 - Unable to create base path mapping for '{domain.name}':\n{e}"
            ) from e
        logger.info("V1 - Created API mapping '%s' for '%s'", config.base_path, domain.name)

    async def get_base_path_mappings(self, domain: Domain) -> list[ApiMapping]:
        params = await self._domain_params(domain)
        try:
            items = await get_all_pages(
                self._client.get_base_path_mappings, "items", "position", "position", **params
            )
        except ClientError as e:
            raise MappingLookupError(
                f"V1 - Make sure the '{domain.name}' exists. "
                f"Unable to get Base Path Mappings:\n{e}"
            ) from e
        return [
            ApiMapping(
                api_id=item.get("restApiId"),
                base_path=item.get("basePath") or DEFAULT_BASE_PATH,
                stage=item.get("stage"),
            )
            for item in items
        ]

    async def update_base_path_mapping(self, domain: Domain) -> None:
        current_base_path = domain.api_mapping.base_path or DEFAULT_BASE_PATH
        target_base_path = domain.config.base_path
        logger.info(
            "V1 - Updating API mapping from '%s' to '%s' for '%s'",
            current_base_path,
            target_base_path,
            domain.name,
        )
        params = await self._domain_params(domain)
        try:
            await throttled_call(
                self._client.update_base_path_mapping,
                basePath=current_base_path,
                patchOperations=[
                    {"op": "replace", "path": "/basePath", "value": target_base_path}
                ],
                **params,
            )
        except ClientError as e:
            raise MappingUpdateError(
                f"V1 - Unable to update base path mapping for '{domain.name}':\n{e}"
            ) from e

    async def delete_base_path_mapping(self, domain: Domain) -> None:
        base_path = domain.api_mapping.base_path or DEFAULT_BASE_PATH
        try:
            params = await self._domain_params(domain)
            await throttled_call(
                self._client.delete_base_path_mapping, basePath=base_path, **params
            )
        except ClientError as e:
            logger.warning(
                "V1 - Unable to remove base path mapping for '%s':\n%s", domain.name, e
            )
            return
        logger.info("V1 - Removed '%s' base path mapping", base_path)

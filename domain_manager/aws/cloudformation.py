import logging
from typing import Any

from botocore.exceptions import ClientError

from domain_manager.aws.clients import AwsClients
from domain_manager.aws.retry import get_all_pages, throttled_call
from domain_manager.config import DeploymentConfig
from domain_manager.constants import (
    CF_IMPORT_VALUE,
    CF_REF,
    CF_RESOURCE_IDS,
    GATEWAY_API_ID_KEYS,
    ApiType,
)
from domain_manager.exceptions import MissingApiIdError, StackResourceNotFoundError

logger = logging.getLogger(__name__)


class StackApiIdResolver:
    """Finds the physical id of the API a custom domain should be mapped to.

    The provider ``apiGateway`` section wins over the stack. It may hold a literal id,
    an ``Fn::ImportValue`` of another stack's export, or a ``Ref`` to a resource of
    this stack. Otherwise the API type's default logical id is looked up in the
    deployment stack and then in its nested stacks.
    """

    def __init__(self, clients: AwsClients, deployment: DeploymentConfig) -> None:
        self._clients = clients
        self._deployment = deployment

    @property
    def stack_name(self) -> str:
        return self._deployment.resolved_stack_name

    async def find_api_id(self, api_type: ApiType) -> str:
        """
        Raises:
            StackResourceNotFoundError: If the API is in neither the stack nor a nested stack.
            MissingApiIdError: If the stack resource has no physical id.
        """
        config_api_id = await self.get_config_api_id(api_type)
        if config_api_id:
            return config_api_id
        return await self.get_stack_api_id(api_type)

    async def get_config_api_id(self, api_type: ApiType) -> str | None:
        key = GATEWAY_API_ID_KEYS.get(api_type)
        value = self._deployment.api_gateway.get(key) if key else None
        if not value:
            return None
        if isinstance(value, str):
            logger.info("Mapping custom domain to existing API %s.", value)
            return value
        return await self._resolve_intrinsic(value, api_type)

    async def _resolve_intrinsic(self, value: dict[str, Any], api_type: ApiType) -> str | None:
        import_name = value.get(CF_IMPORT_VALUE)
        if import_name:
            exports = await self.get_import_values([import_name])
            if import_name not in exports:
                logger.warning(
                    "CloudFormation ImportValue '%s' not found in the outputs", import_name
                )
            return exports.get(import_name)

        ref = value.get(CF_REF)
        if ref:
            try:
                return await self.get_stack_api_id(api_type, ref)
            except (StackResourceNotFoundError, MissingApiIdError) as e:
                logger.warning("Unable to get ref %s value.\n%s", ref, e)
                return None

        logger.warning("Unsupported apiGateway.%s object", GATEWAY_API_ID_KEYS[api_type])
        return None

    async def get_import_values(self, names: list[str]) -> dict[str, str]:
        exports = await get_all_pages(
            self._clients.cloudformation.list_exports, "Exports", "NextToken", "NextToken"
        )
        return {item["Name"]: item["Value"] for item in exports if item["Name"] in names}

    async def get_stack_api_id(
        self, api_type: ApiType, logical_resource_id: str | None = None
    ) -> str:
        logical_resource_id = logical_resource_id or CF_RESOURCE_IDS[api_type]
        try:
            detail = await self.describe_stack_resource(logical_resource_id, self.stack_name)
        except ClientError as e:
            logger.debug("Resource %s not in stack %s: %s", logical_resource_id, self.stack_name, e)
            detail = await self.find_in_nested_stacks(logical_resource_id)

        if detail is None:
            raise StackResourceNotFoundError(
                f"Failed to find a stack {self.stack_name} resource {logical_resource_id}"
            )

        api_id = detail.get("PhysicalResourceId")
        if not api_id:
            raise MissingApiIdError(
                f"No ApiId associated with CloudFormation stack {self.stack_name}"
            )
        return api_id

    async def describe_stack_resource(
        self, logical_resource_id: str, stack_name: str
    ) -> dict[str, Any]:
        response = await throttled_call(
            self._clients.cloudformation.describe_stack_resource,
            LogicalResourceId=logical_resource_id,
            StackName=stack_name,
        )
        return response["StackResourceDetail"]

    async def find_in_nested_stacks(self, logical_resource_id: str) -> dict[str, Any] | None:
        stacks = await get_all_pages(
            self._clients.cloudformation.describe_stacks, "Stacks", "NextToken", "NextToken"
        )
        marker = f"/{self.stack_name}/"
        nested_names = [
            stack["StackName"] for stack in stacks if marker in (stack.get("RootId") or "")
        ]
        for name in nested_names:
            try:
                return await self.describe_stack_resource(logical_resource_id, name)
            except ClientError as e:
                logger.warning("Failed to find CloudFormation resources with an error: %s", e)
        return None

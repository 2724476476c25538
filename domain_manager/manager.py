import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from rich.console import Console

from domain_manager.aws.acm import CertificateResolver
from domain_manager.aws.api_gateway import ApiGateways
from domain_manager.aws.clients import AwsClients
from domain_manager.aws.cloudformation import StackApiIdResolver
from domain_manager.aws.route53 import DnsRecordReconciler
from domain_manager.aws.s3 import TruststoreValidator
from domain_manager.config import DeploymentConfig
from domain_manager.constants import AUTO_DOMAIN_POLL_INTERVAL, PLUGIN_NAME, ApiType
from domain_manager.domain import ApiMapping, Domain, DomainConfig, DomainConfigDict
from domain_manager.exceptions import (
    ConfigError,
    DomainManagerError,
    DomainOperationError,
    MissingApiIdError,
    StackResourceNotFoundError,
)
from domain_manager.outputs import add_outputs
from domain_manager.summary import print_domain_summaries

logger = logging.getLogger(__name__)

API_TYPE_KEYS = tuple(api_type.lower() for api_type in ApiType)


def parse_domain_configs(
    custom: dict[str, Any] | None, deployment: DeploymentConfig | None = None
) -> list[DomainConfig]:
    """Build the enabled domain configs from the ``custom`` section of a manifest.

    ``customDomain`` holds one domain and ``customDomains`` a list of them. An entry
    keyed by API type (``rest``, ``http``, ``websocket``) expands into one domain per
    API type.

    Raises:
        ConfigError: If configuration is missing or invalid.
    """
    custom = custom or {}
    if "customDomain" not in custom and "customDomains" not in custom:
        raise ConfigError(f"{PLUGIN_NAME}: Plugin configuration is missing.")

    entries: list[dict[str, Any]] = []
    if custom.get("customDomain"):
        entries.append(custom["customDomain"])
    entries.extend(custom.get("customDomains") or [])

    configs: list[DomainConfig] = []
    for entry in entries:
        keys = list(entry)
        if not any(key in API_TYPE_KEYS for key in keys):
            configs.append(DomainConfig.from_dict(entry, deployment))
            continue

        invalid = [key for key in keys if key not in API_TYPE_KEYS]
        if invalid:
            raise ConfigError(f"Invalid API Type(s): {'; '.join(invalid)}")
        for api_type in keys:
            typed: DomainConfigDict = {**entry[api_type], "apiType": api_type}
            configs.append(DomainConfig.from_dict(typed, deployment))

    return [config for config in configs if config.enabled]


def select_api_mappings(domain: Domain, mappings: list[ApiMapping]) -> list[ApiMapping]:
    """Mappings that belong to the domain's API.

    With ``allowPathMatching`` a mapping on the same base path also counts, which is
    how a path is moved to an API of another type.
    """
    config = domain.config
    return [
        mapping
        for mapping in mappings
        if mapping.api_id == domain.api_id
        or (config.allow_path_matching and mapping.base_path == config.base_path)
    ]


class DomainManager:
    """Runs the custom domain lifecycle operations for one deployment.

    Every operation rebuilds the domain list from configuration, then reconciles each
    domain in its own task. A failing domain does not stop the others. Once all tasks
    finish, failures are raised together as a ``DomainOperationError``.
    """

    def __init__(
        self,
        deployment: DeploymentConfig,
        custom: dict[str, Any] | None,
        *,
        clients: AwsClients | None = None,
        console: Console | None = None,
    ) -> None:
        self.deployment = deployment
        self.custom = custom
        self.console = console or Console()
        self.clients = clients or AwsClients(deployment.aws)
        self.certificates = CertificateResolver(self.clients)
        self.dns = DnsRecordReconciler(self.clients)
        self.gateways = ApiGateways(self.clients, deployment)
        self.stack = StackApiIdResolver(self.clients, deployment)
        self.truststore = TruststoreValidator(self.clients)
        self.domains: list[Domain] = []

    def initialize(self) -> list[Domain]:
        self.domains = [
            Domain(config) for config in parse_domain_configs(self.custom, self.deployment)
        ]
        for domain in self.domains:
            if domain.config.allow_path_matching:
                logger.warning(
                    '"allowPathMatching" is set for %s. This should only be used when '
                    "migrating a path to a different API type. e.g. REST to HTTP.",
                    domain.name,
                )
        return self.domains

    async def _for_each_domain(
        self, operation: str, task: Callable[[Domain], Awaitable[None]]
    ) -> None:
        results = await asyncio.gather(
            *(task(domain) for domain in self.domains), return_exceptions=True
        )
        errors: dict[str, BaseException] = {}
        for domain, result in zip(self.domains, results, strict=True):
            if isinstance(result, Exception):
                logger.error("Unable to %s for %s: %s", operation, domain.name, result)
                logger.debug("Underlying error for %s", domain.name, exc_info=result)
                errors[domain.name] = result
            elif isinstance(result, BaseException):
                raise result
        if errors:
            raise DomainOperationError(operation, errors)

    async def create_domains(self) -> None:
        self.initialize()
        await self._for_each_domain("create domain", self.create_domain)

    async def create_domain(self, domain: Domain) -> None:
        adapter = self.gateways.for_domain(domain)
        domain.domain_info = await adapter.get_custom_domain(domain)
        if domain.domain_info is None:
            domain.certificate_arn = await self.certificates.get_certificate_arn(domain)
            if domain.config.tls_truststore_uri:
                await self.truststore.check_truststore_exists(domain.config)
            domain.domain_info = await adapter.create_custom_domain(domain)
            logger.info(
                "Custom domain %s was created. "
                "New domains may take up to 40 minutes to be initialized.",
                domain.name,
            )
        else:
            logger.info("Custom domain %s already exists.", domain.name)
        # records can drift from the domain resource, so they are upserted either way
        await self.dns.change_resource_record_set("UPSERT", domain)

    async def delete_domains(self) -> None:
        self.initialize()
        await self._for_each_domain("delete domain", self.delete_domain)

    async def delete_domain(self, domain: Domain) -> None:
        adapter = self.gateways.for_domain(domain)
        domain.domain_info = await adapter.get_custom_domain(domain)
        if domain.domain_info is None:
            logger.info("Custom domain %s does not exist.", domain.name)
            return

        await adapter.delete_custom_domain(domain)
        await self.dns.change_resource_record_set("DELETE", domain)
        domain.domain_info = None
        logger.info("Custom domain %s was deleted.", domain.name)

    async def create_or_get_domains_for_outputs(self) -> dict[str, Any]:
        """Bind every domain's target into the template outputs, before deploy.

        Domains with ``autoDomain`` are created first, then polled until every domain
        exists or ``autoDomainWaitFor`` seconds have passed.
        """
        self.initialize()
        await self._for_each_domain("create or get domain", self._create_or_get_for_outputs)
        return self.deployment.template.get("Outputs", {})

    async def _create_or_get_for_outputs(self, domain: Domain) -> None:
        adapter = self.gateways.for_domain(domain)
        if domain.config.auto_domain:
            logger.info("Creating domain name before deploy.")
            await self.create_domain(domain)

        domain.domain_info = await adapter.get_custom_domain(domain)

        if domain.config.auto_domain:
            wait_for = domain.config.auto_domain_wait_for
            poll = 0
            while poll * AUTO_DOMAIN_POLL_INTERVAL < wait_for and any(
                other.domain_info is None for other in self.domains
            ):
                logger.info(
                    "Poll #%d: polling every %d seconds for domain to exist or until %d "
                    "seconds have elapsed before starting deployment",
                    poll + 1,
                    AUTO_DOMAIN_POLL_INTERVAL,
                    wait_for,
                )
                await asyncio.sleep(AUTO_DOMAIN_POLL_INTERVAL)
                domain.domain_info = await adapter.get_custom_domain(domain)
                poll += 1

        add_outputs(self.deployment, domain)

    async def setup_base_path_mappings(self) -> None:
        self.initialize()
        try:
            await self._for_each_domain("setup base domain mappings", self.setup_base_path_mapping)
        finally:
            print_domain_summaries(self.domains, self.console)

    async def setup_base_path_mapping(self, domain: Domain) -> None:
        domain.api_id = await self.stack.find_api_id(domain.config.api_type)
        domain.domain_info = await self.gateways.for_domain(domain).get_custom_domain(domain)
        # mappings are listed by the API version that will update them, so mapping ids match
        adapter = self.gateways.for_update(domain)
        mappings = await adapter.get_base_path_mappings(domain)
        matching = select_api_mappings(domain, mappings)
        domain.api_mapping = matching[0] if matching else None

        if domain.api_mapping is None:
            await self.gateways.for_domain(domain).create_base_path_mapping(domain)
        else:
            await adapter.update_base_path_mapping(domain)

    async def remove_base_path_mappings(self) -> None:
        self.initialize()
        await self._for_each_domain("remove base path mappings", self.remove_base_path_mapping)

    async def remove_base_path_mapping(self, domain: Domain) -> None:
        external_mappings_exist = False
        try:
            domain.api_id = await self.stack.find_api_id(domain.config.api_type)
        except (StackResourceNotFoundError, MissingApiIdError) as e:
            logger.debug("API lookup for %s failed: %s", domain.name, e)
            domain.api_id = None

        if domain.api_id is None:
            logger.info(
                "Unable to find corresponding API for %s, "
                "API Mappings may need to be manually removed.",
                domain.name,
            )
        else:
            try:
                external_mappings_exist = await self._remove_api_mapping(domain)
            except DomainManagerError as e:
                logger.error("Unable to remove base path mapping for %s: %s", domain.name, e)

        if domain.config.auto_domain and not external_mappings_exist:
            logger.info("Deleting domain name after removing base path mapping.")
            await self.delete_domain(domain)
        elif external_mappings_exist:
            logger.info(
                "Keeping custom domain %s, it still has mappings of other APIs.", domain.name
            )

    async def _remove_api_mapping(self, domain: Domain) -> bool:
        """Delete the domain's own mapping, returning whether mappings of other APIs remain."""
        adapter = self.gateways.for_domain(domain)
        mappings = await adapter.get_base_path_mappings(domain)
        matching = select_api_mappings(domain, mappings)
        if matching:
            domain.api_mapping = matching[0]
            await adapter.delete_base_path_mapping(domain)
        else:
            logger.info("No API mapping of %s found for '%s'.", domain.api_id, domain.name)
        return domain.config.preserve_external_path_mappings and len(mappings) > len(matching)

    async def domain_summaries(self) -> None:
        self.initialize()
        try:
            await self._for_each_domain("print summary", self._fetch_domain_info)
        finally:
            print_domain_summaries(self.domains, self.console)

    async def _fetch_domain_info(self, domain: Domain) -> None:
        domain.domain_info = await self.gateways.for_domain(domain).get_custom_domain(domain)
        if domain.domain_info is None:
            logger.info("Unable to print %s Summary for %s", PLUGIN_NAME, domain.name)

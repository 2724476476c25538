import asyncio
import logging
from typing import Any

from botocore.exceptions import ClientError

from domain_manager.aws.clients import AwsClients
from domain_manager.aws.retry import get_all_pages, throttled_call
from domain_manager.constants import PLUGIN_NAME, ChangeAction, RoutingPolicy
from domain_manager.domain import Domain, DomainConfig
from domain_manager.exceptions import DnsChangeError, HostedZoneLookupError, HostedZoneNotFoundError

logger = logging.getLogger(__name__)

HOSTED_ZONE_ID_PREFIX = "/hostedzone/"


def zone_matches(domain_name: str, zone_name: str) -> bool:
    """Whether records for ``domain_name`` can live in the zone named ``zone_name``.

    Plain string suffix match on the domain without its first label, not label aware.
    """
    zone_name = zone_name.removesuffix(".")
    domain_host = domain_name.partition(".")[2]
    return domain_name == zone_name or domain_host.endswith(zone_name)


def select_hosted_zone(
    zones: list[dict[str, Any]], domain_name: str, private: bool | None = None
) -> str | None:
    """Pick the most specific (longest named) matching zone and return its bare id."""
    candidates = [
        zone
        for zone in zones
        if (private is None or zone.get("Config", {}).get("PrivateZone", False) == private)
        and zone_matches(domain_name, zone["Name"])
    ]
    if not candidates:
        return None
    best = max(candidates, key=lambda zone: len(zone["Name"].removesuffix(".")))
    return best["Id"].replace(HOSTED_ZONE_ID_PREFIX, "")


class HostedZoneResolver:
    def __init__(self, clients: AwsClients) -> None:
        self._clients = clients

    def _route53(self, config: DomainConfig) -> Any:
        return self._clients.route53(config.route53_profile, config.route53_region)

    async def get_hosted_zone_id(self, domain: Domain, private: bool | None = None) -> str:
        """Resolve the hosted zone to manage records of ``domain`` in.

        ``private`` overrides the configured ``hostedZonePrivate`` preference.

        Raises:
            HostedZoneLookupError: If hosted zones cannot be listed.
            HostedZoneNotFoundError: If no zone matches the domain.
        """
        config = domain.config
        if config.hosted_zone_id:
            logger.info("Selected specific hostedZoneId %s", config.hosted_zone_id)
            return config.hosted_zone_id

        if private is None:
            private = config.hosted_zone_private
        if private is not None:
            logger.info("Filtering to only %s zones.", "private" if private else "public")

        try:
            zones = await get_all_pages(
                self._route53(config).list_hosted_zones, "HostedZones", "Marker", "NextMarker"
            )
        except ClientError as e:
            raise HostedZoneLookupError(f"Unable to list hosted zones in Route53.\n{e}") from e
        logger.debug("Found hosted zones: %s", [zone["Name"] for zone in zones])

        zone_id = select_hosted_zone(zones, config.given_domain_name, private)
        if zone_id is None:
            raise HostedZoneNotFoundError(config.given_domain_name)
        return zone_id


class DnsRecordReconciler:
    """Maintains the A/AAAA alias records that point a custom domain at its target."""

    def __init__(self, clients: AwsClients, zones: HostedZoneResolver | None = None) -> None:
        self._clients = clients
        self._zones = zones or HostedZoneResolver(clients)

    async def _hosted_zone_ids(self, domain: Domain) -> list[str]:
        if domain.config.split_horizon_dns:
            public, private = await asyncio.gather(
                self._zones.get_hosted_zone_id(domain, private=False),
                self._zones.get_hosted_zone_id(domain, private=True),
            )
            return [public, private]
        return [await self._zones.get_hosted_zone_id(domain)]

    def _routing_options(self, domain: Domain, target_name: str) -> dict[str, Any]:
        params = domain.config.route53_params
        if params.routing_policy == RoutingPolicy.SIMPLE:
            return {}

        options: dict[str, Any] = {"SetIdentifier": params.set_identifier or target_name}
        if params.routing_policy == RoutingPolicy.LATENCY:
            options["Region"] = domain.config.route53_region or self._clients.region
        else:
            options["Weight"] = params.weight
        if params.health_check_id:
            options["HealthCheckId"] = params.health_check_id
        return options

    def build_changes(
        self, action: ChangeAction, domain: Domain, alias_zone_id: str
    ) -> list[dict[str, Any]]:
        config = domain.config
        target_name = (
            domain.domain_info.domain_name if domain.domain_info else config.given_domain_name
        )
        record_types = ["A", "AAAA"] if config.create_route53_ipv6_record else ["A"]
        routing_options = self._routing_options(domain, target_name)
        return [
            {
                "Action": action,
                "ResourceRecordSet": {
                    "AliasTarget": {
                        "DNSName": target_name,
                        "EvaluateTargetHealth": False,
                        "HostedZoneId": alias_zone_id,
                    },
                    "Name": config.given_domain_name,
                    "Type": record_type,
                    **routing_options,
                },
            }
            for record_type in record_types
        ]

    async def change_resource_record_set(self, action: ChangeAction, domain: Domain) -> None:
        """Submit ``action`` for the alias records of ``domain``.

        With split horizon DNS the same change batch goes to both the public and the
        private zone.

        Raises:
            DnsChangeError: If Route53 rejects a change batch.
        """
        config = domain.config
        if not config.create_route53_record:
            logger.info(
                "Skipping %s of Route53 record.", "removal" if action == "DELETE" else "creation"
            )
            return

        verb = "Removing" if action == "DELETE" else "Creating/updating"
        logger.info("%s route53 record for '%s'.", verb, config.given_domain_name)
        zone_ids = await self._hosted_zone_ids(domain)
        # alias zone of the gateway target, only unknown before the domain exists
        alias_zone_id = domain.domain_info.hosted_zone_id if domain.domain_info else zone_ids[0]
        changes = self.build_changes(action, domain, alias_zone_id)
        record_types = [change["ResourceRecordSet"]["Type"] for change in changes]

        route53 = self._clients.route53(config.route53_profile, config.route53_region)
        for zone_id in zone_ids:
            try:
                await throttled_call(
                    route53.change_resource_record_sets,
                    HostedZoneId=zone_id,
                    ChangeBatch={
                        "Changes": changes,
                        "Comment": f'Record created by "{PLUGIN_NAME}"',
                    },
                )
            except ClientError as e:
                raise DnsChangeError(action, config.given_domain_name, record_types, str(e)) from e

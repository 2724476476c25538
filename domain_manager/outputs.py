import logging
from typing import Any

from domain_manager.config import DeploymentConfig
from domain_manager.constants import OUTPUT_KEY_SUFFIXES
from domain_manager.domain import Domain

logger = logging.getLogger(__name__)


def output_keys(domain: Domain) -> tuple[str, str, str]:
    """Distribution domain name, domain name and hosted zone id output keys.

    REST APIs keep the unsuffixed keys so several API types can share one template.
    """
    suffix = OUTPUT_KEY_SUFFIXES[domain.config.api_type]
    return f"DistributionDomainName{suffix}", f"DomainName{suffix}", f"HostedZoneId{suffix}"


def _output(deployment: DeploymentConfig, domain: Domain, key: str, value: str) -> dict[str, Any]:
    return {
        "Value": value,
        "Export": {"Name": f"sls-{deployment.service}-{domain.config.stage}-{key}"},
    }


def add_outputs(deployment: DeploymentConfig, domain: Domain) -> None:
    """Write the domain's outputs into ``deployment.template``.

    Nothing is written for a domain that does not exist remotely.
    """
    if domain.domain_info is None:
        logger.warning(
            "Custom domain %s does not exist, skipping stack outputs.", domain.name
        )
        return

    outputs = deployment.template.setdefault("Outputs", {})
    distribution_key, domain_key, zone_key = output_keys(domain)
    outputs[distribution_key] = _output(
        deployment, domain, distribution_key, domain.domain_info.domain_name
    )
    outputs[domain_key] = _output(deployment, domain, domain_key, domain.name)
    if domain.domain_info.hosted_zone_id:
        outputs[zone_key] = _output(
            deployment, domain, zone_key, domain.domain_info.hosted_zone_id
        )

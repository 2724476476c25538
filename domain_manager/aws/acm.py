import logging
from typing import Any

from botocore.exceptions import ClientError

from domain_manager.aws.clients import AwsClients
from domain_manager.aws.retry import get_all_pages
from domain_manager.constants import CERTIFICATE_STATUSES
from domain_manager.domain import Domain
from domain_manager.exceptions import CertificateLookupError, CertificateNotFoundError

logger = logging.getLogger(__name__)

WILDCARD_PREFIX = "*."


def _certificate_names(certificate: dict[str, Any]) -> list[str]:
    names = [certificate["DomainName"]] if certificate.get("DomainName") else []
    names.extend(certificate.get("SubjectAlternativeNameSummaries") or [])
    return names


def find_by_name(certificates: list[dict[str, Any]], certificate_name: str) -> str | None:
    """Return the first certificate whose name, or a SAN, is ``certificate_name``.

    A non-wildcard name also matches certificates issued for ``*.<name>``.
    """
    candidates = {certificate_name}
    if not certificate_name.startswith(WILDCARD_PREFIX):
        candidates.add(f"{WILDCARD_PREFIX}{certificate_name}")

    for certificate in certificates:
        if any(name in candidates for name in _certificate_names(certificate)):
            return certificate["CertificateArn"]
    return None


def find_best_match(certificates: list[dict[str, Any]], domain_name: str) -> str | None:
    """Return the certificate with the longest name contained in ``domain_name``.

    Wildcard prefixes are stripped first. Containment is a plain substring check.
    """
    best_arn = None
    best_length = 0
    for certificate in certificates:
        for name in _certificate_names(certificate):
            normalized = name.removeprefix(WILDCARD_PREFIX)
            if normalized in domain_name and len(normalized) > best_length:
                best_arn = certificate["CertificateArn"]
                best_length = len(normalized)
    return best_arn


class CertificateResolver:
    def __init__(self, clients: AwsClients) -> None:
        self._clients = clients

    async def list_certificates(self, domain: Domain) -> list[dict[str, Any]]:
        acm = self._clients.acm(domain.config.endpoint_type)
        try:
            return await get_all_pages(
                acm.list_certificates,
                "CertificateSummaryList",
                "NextToken",
                "NextToken",
                CertificateStatuses=list(CERTIFICATE_STATUSES),
            )
        except ClientError as e:
            logger.debug("Listing certificates failed", exc_info=True)
            raise CertificateLookupError(
                f"Could not search certificates in Certificate Manager.\n{e}"
            ) from e

    async def get_certificate_arn(self, domain: Domain) -> str:
        """Resolve the certificate ARN for ``domain``.

        An explicit ``certificateArn`` is returned as is. Otherwise the certificate
        inventory is searched by ``certificateName``, or by best match against the
        domain name.

        Raises:
            CertificateLookupError: If certificates cannot be listed.
            CertificateNotFoundError: If no certificate matches.
        """
        config = domain.config
        if config.certificate_arn:
            logger.info("Selected specific certificateArn %s", config.certificate_arn)
            return config.certificate_arn

        certificates = await self.list_certificates(domain)
        if config.certificate_name:
            search_key = config.certificate_name
            arn = find_by_name(certificates, search_key)
        else:
            search_key = config.given_domain_name
            arn = find_best_match(certificates, search_key)

        if arn is None:
            raise CertificateNotFoundError(search_key)
        logger.debug("Resolved certificate %s for '%s'", arn, search_key)
        return arn

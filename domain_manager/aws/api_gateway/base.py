from typing import Protocol

from botocore.exceptions import ClientError

from domain_manager.domain import ApiMapping, Domain, DomainInfo

HTTP_NOT_FOUND = 404


def is_not_found(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code")
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code == "NotFoundException" or status == HTTP_NOT_FOUND


class GatewayAdapter(Protocol):
    """Custom domain and mapping operations of one API Gateway API version."""

    async def create_custom_domain(self, domain: Domain) -> DomainInfo:
        """
        Raises:
            DomainCreationError: If the domain cannot be created.
        """
        ...

    async def get_custom_domain(self, domain: Domain) -> DomainInfo | None:
        """Return the remote domain, or ``None`` if it does not exist yet.

        Raises:
            DomainLookupError: On any failure other than not found.
        """
        ...

    async def delete_custom_domain(self, domain: Domain) -> None: ...

    async def create_base_path_mapping(self, domain: Domain) -> None: ...

    async def get_base_path_mappings(self, domain: Domain) -> list[ApiMapping]:
        """Return every mapping of the domain, whichever API they point at."""
        ...

    async def update_base_path_mapping(self, domain: Domain) -> None: ...

    async def delete_base_path_mapping(self, domain: Domain) -> None:
        """Remove ``domain.api_mapping``. Failures are logged, not raised."""
        ...

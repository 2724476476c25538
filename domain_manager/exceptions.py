class DomainManagerError(Exception):
    """Base class for every error raised by the domain manager."""


class ConfigError(DomainManagerError, ValueError):
    """Raised when user supplied configuration is malformed or inconsistent."""


class CertificateLookupError(DomainManagerError):
    """Raised when certificates cannot be listed in Certificate Manager."""


class CertificateNotFoundError(DomainManagerError):
    """Raised when no in-date certificate matches the search key."""

    def __init__(self, search_key: str):
        self.search_key = search_key
        super().__init__(f"Could not find an in-date certificate for '{search_key}'.")


class HostedZoneLookupError(DomainManagerError):
    """Raised when hosted zones cannot be listed in Route53."""


class HostedZoneNotFoundError(DomainManagerError):
    """Raised when no hosted zone can hold records for the domain."""

    def __init__(self, domain_name: str):
        self.domain_name = domain_name
        super().__init__(f"Could not find hosted zone '{domain_name}'")


class StackResourceNotFoundError(DomainManagerError):
    """Raised when the API resource is in neither the stack nor its nested stacks."""


class MissingApiIdError(DomainManagerError):
    """Raised when the stack resource exists but has no physical id yet."""


class DomainLookupError(DomainManagerError):
    """Raised when fetching a custom domain fails for a reason other than not found."""


class DomainCreationError(DomainManagerError):
    pass


class DomainDeletionError(DomainManagerError):
    pass


class MappingCreationError(DomainManagerError):
    pass


class MappingLookupError(DomainManagerError):
    pass


class MappingUpdateError(DomainManagerError):
    pass


class DnsChangeError(DomainManagerError):
    """Raised when a Route53 change batch is rejected."""

    def __init__(self, action: str, domain_name: str, record_types: list[str], reason: str):
        self.action = action
        self.domain_name = domain_name
        super().__init__(
            f"Failed to {action} {','.join(record_types)} Alias for '{domain_name}':\n{reason}"
        )


class TruststoreValidationError(DomainManagerError):
    pass


class DomainOperationError(DomainManagerError):
    """Raised by a lifecycle operation when one or more domains failed.

    Sibling domains are still processed; ``errors`` maps each failed domain name to
    the exception its task raised.
    """

    def __init__(self, operation: str, errors: dict[str, BaseException]):
        self.operation = operation
        self.errors = errors
        details = "; ".join(f"{name}: {err}" for name, err in errors.items())
        super().__init__(f"Unable to {operation} for {len(errors)} domain(s). {details}")

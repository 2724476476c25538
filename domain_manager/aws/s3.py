import logging
from urllib.parse import urlparse

from botocore.exceptions import ClientError

from domain_manager.aws.clients import AwsClients
from domain_manager.aws.retry import throttled_call
from domain_manager.domain import DomainConfig
from domain_manager.exceptions import TruststoreValidationError

logger = logging.getLogger(__name__)

HTTP_FORBIDDEN = 403


def split_s3_uri(uri: str) -> tuple[str, str]:
    parsed = urlparse(uri)
    return parsed.netloc, parsed.path.removeprefix("/")


class TruststoreValidator:
    def __init__(self, clients: AwsClients) -> None:
        self._clients = clients

    async def check_truststore_exists(self, config: DomainConfig) -> None:
        """Check that the mutual TLS truststore object of ``config`` exists.

        Missing permission to check (403) only logs a warning.

        Raises:
            TruststoreValidationError: If the object cannot be found or read.
        """
        bucket, key = split_s3_uri(config.tls_truststore_uri)
        params = {"Bucket": bucket, "Key": key}
        if config.tls_truststore_version:
            params["VersionId"] = config.tls_truststore_version

        try:
            await throttled_call(self._clients.s3.head_object, **params)
        except ClientError as e:
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            if status != HTTP_FORBIDDEN:
                raise TruststoreValidationError(
                    f"Could not head S3 object at {config.tls_truststore_uri}.\n{e}"
                ) from e
            logger.warning(
                "Forbidden to check the existence of the S3 object %s due to\n%s",
                config.tls_truststore_uri,
                e,
            )

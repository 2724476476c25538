import logging
from typing import Any

import boto3

from domain_manager.config import AwsConfig
from domain_manager.constants import EDGE_CERTIFICATE_REGION, EndpointType

logger = logging.getLogger(__name__)


class AwsClients:
    """Lazily created boto3 clients shared by every component of one run.

    One ``boto3.Session`` is kept per profile and one client per (service, region,
    profile), so domains reconciled in parallel reuse the same clients.
    """

    def __init__(self, aws: AwsConfig) -> None:
        self._aws = aws
        self._sessions: dict[str | None, boto3.Session] = {}
        self._clients: dict[tuple[str, str | None, str | None], Any] = {}

    @property
    def region(self) -> str | None:
        return self._aws.region or self._session(self._aws.profile).region_name

    def _session(self, profile: str | None) -> boto3.Session:
        if profile not in self._sessions:
            self._sessions[profile] = boto3.Session(
                profile_name=profile, region_name=self._aws.region
            )
        return self._sessions[profile]

    def client(self, service: str, region: str | None = None, profile: str | None = None) -> Any:
        profile = profile or self._aws.profile
        region = region or self._aws.region
        key = (service, region, profile)
        if key not in self._clients:
            logger.debug("Creating %s client (region=%s, profile=%s)", service, region, profile)
            self._clients[key] = self._session(profile).client(service, region_name=region)
        return self._clients[key]

    @property
    def api_gateway_v1(self) -> Any:
        return self.client("apigateway")

    @property
    def api_gateway_v2(self) -> Any:
        return self.client("apigatewayv2")

    @property
    def cloudformation(self) -> Any:
        return self.client("cloudformation")

    @property
    def s3(self) -> Any:
        return self.client("s3")

    def acm(self, endpoint_type: EndpointType) -> Any:
        """Certificate Manager client in the region certificates of ``endpoint_type`` live in."""
        if endpoint_type == EndpointType.EDGE:
            return self.client("acm", region=EDGE_CERTIFICATE_REGION)
        return self.client("acm")

    def route53(self, profile: str | None = None, region: str | None = None) -> Any:
        return self.client("route53", region=region, profile=profile)

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from domain_manager.config import AwsConfig, DeploymentConfig
from domain_manager.domain import Domain, DomainConfig


@pytest.fixture
def client_error():
    def make(code: str, status: int = 400, operation: str = "Operation") -> ClientError:
        return ClientError(
            {
                "Error": {"Code": code, "Message": f"{code} raised"},
                "ResponseMetadata": {"HTTPStatusCode": status},
            },
            operation,
        )

    return make


@pytest.fixture
def deployment():
    return DeploymentConfig(
        service="my-service",
        provider_stage="dev",
        aws=AwsConfig(profile="default", region="us-west-2"),
        tags={"team": "api"},
        stack_tags={"team": "infra", "env": "dev"},
    )


@pytest.fixture
def clients():
    mock_clients = MagicMock()
    mock_clients.region = "us-west-2"
    return mock_clients


@pytest.fixture
def make_domain(deployment):
    def make(**raw) -> Domain:
        return Domain(DomainConfig.from_dict({"domainName": "api.example.com", **raw}, deployment))

    return make


@pytest.fixture
def sleep_mock():
    with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep

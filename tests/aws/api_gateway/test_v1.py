import asyncio
import logging
from unittest.mock import MagicMock

import pytest

from domain_manager.aws.api_gateway.v1 import ApiGatewayV1Adapter
from domain_manager.domain import ApiMapping, DomainInfo
from domain_manager.exceptions import (
    DomainCreationError,
    DomainDeletionError,
    DomainLookupError,
    MappingCreationError,
    MappingLookupError,
    MappingUpdateError,
)


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def adapter(client, deployment):
    return ApiGatewayV1Adapter(client, deployment)


def test_create_edge_domain_uses_certificate_arn(adapter, client, make_domain):
    client.create_domain_name.return_value = {
        "domainName": "test_domain",
        "distributionDomainName": "d111.cloudfront.net",
        "distributionHostedZoneId": "Z2FDTNDATAQYW2",
        "securityPolicy": "TLS_1_2",
    }
    domain = make_domain(domainName="test_domain", basePath="", endpointType="EDGE")
    domain.certificate_arn = "arn:acm:cert"

    info = asyncio.run(adapter.create_custom_domain(domain))

    assert info == DomainInfo(
        domain_name="d111.cloudfront.net",
        hosted_zone_id="Z2FDTNDATAQYW2",
        security_policy="TLS_1_2",
    )
    client.create_domain_name.assert_called_once_with(
        domainName="test_domain",
        endpointConfiguration={"types": ["EDGE"]},
        securityPolicy="TLS_1_2",
        tags={"team": "api", "env": "dev"},
        certificateArn="arn:acm:cert",
    )


def test_create_regional_domain_with_truststore(adapter, client, make_domain):
    client.create_domain_name.return_value = {
        "regionalDomainName": "d-abc.execute-api.us-west-2.amazonaws.com",
        "regionalHostedZoneId": "Z2OJLYMUO9EFXC",
    }
    domain = make_domain(
        endpointType="REGIONAL",
        securityPolicy="tls_1_0",
        tlsTruststoreUri="s3://bucket/truststore.pem",
        tlsTruststoreVersion="v1",
    )
    domain.certificate_arn = "arn:acm:cert"

    asyncio.run(adapter.create_custom_domain(domain))

    params = client.create_domain_name.call_args.kwargs
    assert params["regionalCertificateArn"] == "arn:acm:cert"
    assert "certificateArn" not in params
    assert params["securityPolicy"] == "TLS_1_0"
    assert params["mutualTlsAuthentication"] == {
        "truststoreUri": "s3://bucket/truststore.pem",
        "truststoreVersion": "v1",
    }


def test_create_failure_names_domain(adapter, client, make_domain, client_error):
    client.create_domain_name.side_effect = client_error("BadRequestException")

    message = "Failed to create custom domain 'api.example.com'"
    with pytest.raises(DomainCreationError, match=message):
        asyncio.run(adapter.create_custom_domain(make_domain()))


def test_get_domain(adapter, client, make_domain):
    client.get_domain_name.return_value = {"distributionDomainName": "d111.cloudfront.net"}

    info = asyncio.run(adapter.get_custom_domain(make_domain()))

    assert info.domain_name == "d111.cloudfront.net"
    client.get_domain_name.assert_called_once_with(domainName="api.example.com")


def test_get_missing_domain_returns_none(adapter, client, make_domain, client_error, caplog):
    client.get_domain_name.side_effect = client_error("NotFoundException", 404)

    with caplog.at_level(logging.INFO):
        assert asyncio.run(adapter.get_custom_domain(make_domain())) is None

    assert "'api.example.com' does not exist" in caplog.text


def test_get_domain_failure(adapter, client, make_domain, client_error):
    client.get_domain_name.side_effect = client_error("AccessDeniedException", 403)

    with pytest.raises(DomainLookupError, match="Unable to fetch information"):
        asyncio.run(adapter.get_custom_domain(make_domain()))


def test_private_domain_is_addressed_by_domain_name_id(adapter, client, make_domain):
    client.get_domain_names.side_effect = [
        {
            "items": [
                {
                    "domainName": "api.example.com",
                    "domainNameId": "public-id",
                    "endpointConfiguration": {"types": ["REGIONAL"]},
                }
            ],
            "position": "p2",
        },
        {
            "items": [
                {
                    "domainName": "api.example.com",
                    "domainNameId": "private-id",
                    "endpointConfiguration": {"types": ["PRIVATE"]},
                }
            ]
        },
    ]
    client.get_domain_name.return_value = {"domainName": "api.example.com"}
    domain = make_domain(endpointType="PRIVATE")

    asyncio.run(adapter.get_custom_domain(domain))

    client.get_domain_name.assert_called_once_with(
        domainName="api.example.com", domainNameId="private-id"
    )


def test_private_domain_id_from_domain_info(adapter, client, make_domain):
    domain = make_domain(endpointType="PRIVATE")
    domain.domain_info = DomainInfo(domain_name="api.example.com", domain_name_id="known-id")

    asyncio.run(adapter.delete_custom_domain(domain))

    client.get_domain_names.assert_not_called()
    client.delete_domain_name.assert_called_once_with(
        domainName="api.example.com", domainNameId="known-id"
    )


def test_unknown_private_domain_does_not_exist(adapter, client, make_domain):
    client.get_domain_names.return_value = {"items": []}

    assert asyncio.run(adapter.get_custom_domain(make_domain(endpointType="PRIVATE"))) is None
    client.get_domain_name.assert_not_called()


def test_delete_failure(adapter, client, make_domain, client_error):
    client.delete_domain_name.side_effect = client_error("ConflictException")

    with pytest.raises(DomainDeletionError):
        asyncio.run(adapter.delete_custom_domain(make_domain()))


def test_create_mapping_with_default_base_path(adapter, client, make_domain):
    domain = make_domain(domainName="test_domain", basePath="", endpointType="EDGE")
    domain.api_id = "rest123"

    asyncio.run(adapter.create_base_path_mapping(domain))

    client.create_base_path_mapping.assert_called_once_with(
        basePath="(none)", restApiId="rest123", stage="dev", domainName="test_domain"
    )


def test_create_mapping_failure(adapter, client, make_domain, client_error):
    client.create_base_path_mapping.side_effect = client_error("ConflictException")

    with pytest.raises(MappingCreationError):
        asyncio.run(adapter.create_base_path_mapping(make_domain()))


def test_get_mappings(adapter, client, make_domain):
    client.get_base_path_mappings.side_effect = [
        {"items": [{"basePath": "(none)", "restApiId": "a", "stage": "dev"}], "position": "p2"},
        {"items": [{"basePath": "v2", "restApiId": "b", "stage": "prod"}]},
    ]

    mappings = asyncio.run(adapter.get_base_path_mappings(make_domain()))

    assert mappings == [
        ApiMapping(api_id="a", base_path="(none)", stage="dev"),
        ApiMapping(api_id="b", base_path="v2", stage="prod"),
    ]
    client.get_base_path_mappings.assert_called_with(domainName="api.example.com", position="p2")


def test_get_mappings_failure(adapter, client, make_domain, client_error):
    client.get_base_path_mappings.side_effect = client_error("NotFoundException", 404)

    with pytest.raises(MappingLookupError, match="Make sure the 'api.example.com' exists"):
        asyncio.run(adapter.get_base_path_mappings(make_domain()))


def test_update_mapping_is_keyed_by_current_base_path(adapter, client, make_domain):
    domain = make_domain(basePath="v2")
    domain.api_mapping = ApiMapping(api_id="rest123", base_path="(none)", stage="dev")

    asyncio.run(adapter.update_base_path_mapping(domain))

    client.update_base_path_mapping.assert_called_once_with(
        basePath="(none)",
        patchOperations=[{"op": "replace", "path": "/basePath", "value": "v2"}],
        domainName="api.example.com",
    )


def test_update_mapping_failure(adapter, client, make_domain, client_error):
    client.update_base_path_mapping.side_effect = client_error("BadRequestException")
    domain = make_domain()
    domain.api_mapping = ApiMapping(api_id="rest123", base_path="v1", stage="dev")

    with pytest.raises(MappingUpdateError):
        asyncio.run(adapter.update_base_path_mapping(domain))


def test_delete_mapping(adapter, client, make_domain):
    domain = make_domain()
    domain.api_mapping = ApiMapping(api_id="rest123", base_path="v1", stage="dev")

    asyncio.run(adapter.delete_base_path_mapping(domain))

    client.delete_base_path_mapping.assert_called_once_with(
        basePath="v1", domainName="api.example.com"
    )


def test_delete_mapping_failure_is_only_logged(adapter, client, make_domain, client_error, caplog):
    client.delete_base_path_mapping.side_effect = client_error("NotFoundException", 404)
    domain = make_domain()
    domain.api_mapping = ApiMapping(api_id="rest123", base_path="v1", stage="dev")

    with caplog.at_level(logging.WARNING):
        asyncio.run(adapter.delete_base_path_mapping(domain))

    assert "Unable to remove base path mapping" in caplog.text

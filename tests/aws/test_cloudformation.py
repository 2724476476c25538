import asyncio
import dataclasses
import logging

import pytest

from domain_manager.aws.cloudformation import StackApiIdResolver
from domain_manager.constants import ApiType
from domain_manager.exceptions import MissingApiIdError, StackResourceNotFoundError


@pytest.fixture
def cloudformation(clients):
    return clients.cloudformation


def _resolver(clients, deployment, **api_gateway) -> StackApiIdResolver:
    return StackApiIdResolver(clients, dataclasses.replace(deployment, api_gateway=api_gateway))


def _resource(physical_id: str | None) -> dict:
    return {"StackResourceDetail": {"PhysicalResourceId": physical_id}}


def test_literal_api_id_from_config(clients, deployment, cloudformation):
    resolver = _resolver(clients, deployment, restApiId="abc123")

    assert asyncio.run(resolver.find_api_id(ApiType.REST)) == "abc123"
    cloudformation.describe_stack_resource.assert_not_called()


def test_websocket_api_id_from_config(clients, deployment):
    resolver = _resolver(clients, deployment, restApiId="rest1", websocketApiId="ws1")

    assert asyncio.run(resolver.find_api_id(ApiType.WEBSOCKET)) == "ws1"


def test_import_value_from_exports(clients, deployment, cloudformation):
    cloudformation.list_exports.side_effect = [
        {"Exports": [{"Name": "other-export", "Value": "zzz"}], "NextToken": "t2"},
        {"Exports": [{"Name": "shared-rest-api-id", "Value": "imported1"}]},
    ]
    resolver = _resolver(clients, deployment, restApiId={"Fn::ImportValue": "shared-rest-api-id"})

    assert asyncio.run(resolver.find_api_id(ApiType.REST)) == "imported1"
    assert cloudformation.list_exports.call_count == 2
    cloudformation.describe_stack_resource.assert_not_called()


def test_missing_import_warns_and_falls_back_to_stack(
    clients, deployment, cloudformation, caplog
):
    cloudformation.list_exports.return_value = {"Exports": []}
    cloudformation.describe_stack_resource.return_value = _resource("stack1")
    resolver = _resolver(clients, deployment, restApiId={"Fn::ImportValue": "missing"})

    with caplog.at_level(logging.WARNING):
        api_id = asyncio.run(resolver.find_api_id(ApiType.REST))

    assert api_id == "stack1"
    assert "ImportValue 'missing' not found" in caplog.text


def test_ref_resolves_referenced_logical_id(clients, deployment, cloudformation):
    cloudformation.describe_stack_resource.return_value = _resource("ref1")
    resolver = _resolver(clients, deployment, restApiId={"Ref": "MyRestApi"})

    assert asyncio.run(resolver.find_api_id(ApiType.REST)) == "ref1"
    cloudformation.describe_stack_resource.assert_called_once_with(
        LogicalResourceId="MyRestApi", StackName="my-service-dev"
    )


def test_unresolvable_ref_warns(clients, deployment, cloudformation, client_error, caplog):
    cloudformation.describe_stack_resource.side_effect = client_error("ValidationError")
    cloudformation.describe_stacks.return_value = {"Stacks": []}
    resolver = _resolver(clients, deployment, restApiId={"Ref": "MyRestApi"})

    with caplog.at_level(logging.WARNING):
        assert asyncio.run(resolver.get_config_api_id(ApiType.REST)) is None

    assert "Unable to get ref MyRestApi value" in caplog.text


def test_unsupported_config_object_warns(clients, deployment, caplog):
    resolver = _resolver(clients, deployment, restApiId={"Fn::GetAtt": ["Api", "Id"]})

    with caplog.at_level(logging.WARNING):
        assert asyncio.run(resolver.get_config_api_id(ApiType.REST)) is None

    assert "Unsupported apiGateway.restApiId object" in caplog.text


@pytest.mark.parametrize(
    ("api_type", "logical_id"),
    [
        (ApiType.REST, "ApiGatewayRestApi"),
        (ApiType.HTTP, "HttpApi"),
        (ApiType.WEBSOCKET, "WebsocketsApi"),
    ],
)
def test_default_logical_id_per_api_type(clients, deployment, cloudformation, api_type, logical_id):
    cloudformation.describe_stack_resource.return_value = _resource("api1")

    assert asyncio.run(_resolver(clients, deployment).find_api_id(api_type)) == "api1"
    cloudformation.describe_stack_resource.assert_called_once_with(
        LogicalResourceId=logical_id, StackName="my-service-dev"
    )


def test_explicit_stack_name(clients, deployment, cloudformation):
    cloudformation.describe_stack_resource.return_value = _resource("api1")
    resolver = StackApiIdResolver(
        clients, dataclasses.replace(deployment, stack_name="custom-stack")
    )

    asyncio.run(resolver.find_api_id(ApiType.REST))

    cloudformation.describe_stack_resource.assert_called_once_with(
        LogicalResourceId="ApiGatewayRestApi", StackName="custom-stack"
    )


def test_falls_back_to_nested_stacks(clients, deployment, cloudformation, client_error):
    cloudformation.describe_stack_resource.side_effect = [
        client_error("ValidationError"),
        client_error("ValidationError"),
        _resource("nested-api"),
    ]
    cloudformation.describe_stacks.return_value = {
        "Stacks": [
            {"StackName": "my-service-dev"},
            {
                "StackName": "my-service-dev-Nested1",
                "RootId": "arn:aws:cloudformation:us-west-2:123:stack/my-service-dev/1",
            },
            {
                "StackName": "another-service-Nested",
                "RootId": "arn:aws:cloudformation:us-west-2:123:stack/another-service/2",
            },
            {
                "StackName": "my-service-dev-Nested2",
                "RootId": "arn:aws:cloudformation:us-west-2:123:stack/my-service-dev/1",
            },
        ]
    }

    api_id = asyncio.run(_resolver(clients, deployment).find_api_id(ApiType.REST))

    assert api_id == "nested-api"
    stack_names = [
        c.kwargs["StackName"] for c in cloudformation.describe_stack_resource.call_args_list
    ]
    assert stack_names == ["my-service-dev", "my-service-dev-Nested1", "my-service-dev-Nested2"]


def test_not_found_anywhere(clients, deployment, cloudformation, client_error):
    cloudformation.describe_stack_resource.side_effect = client_error("ValidationError")
    cloudformation.describe_stacks.return_value = {"Stacks": []}

    with pytest.raises(StackResourceNotFoundError, match="my-service-dev"):
        asyncio.run(_resolver(clients, deployment).find_api_id(ApiType.REST))


def test_resource_without_physical_id(clients, deployment, cloudformation):
    cloudformation.describe_stack_resource.return_value = _resource(None)

    with pytest.raises(MissingApiIdError, match="No ApiId associated"):
        asyncio.run(_resolver(clients, deployment).find_api_id(ApiType.REST))

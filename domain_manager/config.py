from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, kw_only=True)
class AwsConfig:
    """AWS credentials and region overrides.

    Both fields are optional. When not given, boto3 follows the standard AWS credential
    and region resolution chain (environment variables, shared config files, SSO,
    instance roles).
    """

    profile: str | None = None
    region: str | None = None


@dataclass(frozen=True, kw_only=True)
class DeploymentConfig:
    """Everything the domain manager needs to know about the deployment it runs inside.

    Built once per run and handed to every component, so nothing reads ambient state.

    Attributes:
        service: Service name, used for the default stack name and output export names.
        stage: Stage given on the command line, takes precedence over ``provider_stage``.
        provider_stage: Stage configured on the provider.
        aws: Credentials and region used for every AWS client.
        stack_name: Explicit CloudFormation stack name, defaults to ``{service}-{stage}``.
        tags: Service level tags, attached to created custom domains.
        stack_tags: Stack level tags, overridden by ``tags`` on key collision.
        api_gateway: The provider ``apiGateway`` section (``restApiId``, ``websocketApiId``).
        template: The compiled template. Outputs are written into it in place.
    """

    service: str
    stage: str | None = None
    provider_stage: str | None = None
    aws: AwsConfig = field(default_factory=AwsConfig)
    stack_name: str | None = None
    tags: dict[str, str] = field(default_factory=dict)
    stack_tags: dict[str, str] = field(default_factory=dict)
    api_gateway: dict[str, Any] = field(default_factory=dict)
    template: dict[str, Any] = field(default_factory=dict)

    @property
    def region(self) -> str | None:
        return self.aws.region

    @property
    def base_stage(self) -> str | None:
        return self.stage or self.provider_stage

    @property
    def resolved_stack_name(self) -> str:
        return self.stack_name or f"{self.service}-{self.base_stage}"

    @property
    def merged_tags(self) -> dict[str, str]:
        return {**self.stack_tags, **self.tags}

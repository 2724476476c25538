import json
from pathlib import Path
from typing import Any

from domain_manager.config import AwsConfig, DeploymentConfig
from domain_manager.exceptions import ConfigError


def load_manifest(path: Path) -> dict[str, Any]:
    try:
        manifest = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Manifest {path} is not valid JSON: {e}") from e
    if not isinstance(manifest, dict):
        raise ConfigError(f"Manifest {path} must contain a JSON object")
    return manifest


def deployment_from_manifest(
    manifest: dict[str, Any],
    stage: str | None = None,
    region: str | None = None,
    profile: str | None = None,
) -> DeploymentConfig:
    """Build the deployment config from a manifest and command line overrides.

    Command line values take precedence over the ``provider`` section.
    """
    service = manifest.get("service")
    if not service:
        raise ConfigError("Manifest is missing 'service'")
    provider = manifest.get("provider") or {}
    return DeploymentConfig(
        service=service,
        stage=stage,
        provider_stage=provider.get("stage"),
        aws=AwsConfig(
            profile=profile or provider.get("profile"),
            region=region or provider.get("region"),
        ),
        stack_name=provider.get("stackName"),
        tags=provider.get("tags") or {},
        stack_tags=provider.get("stackTags") or {},
        api_gateway=provider.get("apiGateway") or {},
        template={"Resources": {}, "Outputs": {}},
    )

import json
import re

SOURCE_TRIGGERS = ("WEBHOOK", "POLL", "NONE")

# bucket name is "<prefix>-<12 digit account>-<region>", regions run up to 14 chars
BUCKET_NAME_SUFFIX_LENGTH = 1 + 12 + 1 + 14
BUCKET_PREFIX_PATTERN = re.compile(r"[a-z0-9][a-z0-9-]*")


class ConfigurationError(ValueError):
    pass


def getConfigurations(overrides=None):
    response = {
        "stack_id": "EcsPipelineStack",
        "description": (
            "AWS CodePipeline for automated CI/CD of CloudFormation stack with "
            "NAT Gateway, ECS, ALB, RDS, and ECR using GitHub"
        ),
        "github_owner": None,
        "github_repo": "my-ecs-repo",
        "github_branch": "main",
        "build_project_name": "ECSBuild",
        "stack_name": "ECSStack",
        "template_file": "infrastructure.yaml",
        "ecr_repository_name": "ecs-app-repo",
        "source_trigger": "WEBHOOK",
        "privileged_mode": True,
        "artifact_bucket_prefix": "codepipeline-artifact",
    }
    if not overrides:
        return response

    # `cdk synth -c pipeline=...` hands context over as a JSON string
    if isinstance(overrides, str):
        try:
            overrides = json.loads(overrides)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"pipeline context is not valid JSON: {e}") from e
    if not isinstance(overrides, dict):
        raise ConfigurationError("pipeline context must be a JSON object")

    unknown = sorted(set(overrides) - set(response))
    if unknown:
        raise ConfigurationError(f"unknown configuration keys: {', '.join(unknown)}")

    for key, value in overrides.items():
        if key == "privileged_mode":
            value = _to_bool(key, value)
        elif key == "source_trigger":
            if not isinstance(value, str) or value.upper() not in SOURCE_TRIGGERS:
                raise ConfigurationError(
                    f"{key} must be one of {', '.join(SOURCE_TRIGGERS)}, got {value!r}"
                )
            value = value.upper()
        elif key != "github_owner" or value is not None:
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f"{key} must be a non-empty string")
            if key == "artifact_bucket_prefix":
                _check_bucket_prefix(key, value)
        response[key] = value

    return response


def _to_bool(key: str, value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise ConfigurationError(f"{key} must be true or false, got {value!r}")


def _check_bucket_prefix(key: str, value: str) -> None:
    if not BUCKET_PREFIX_PATTERN.fullmatch(value):
        raise ConfigurationError(
            f"{key} may only contain lowercase letters, digits and hyphens "
            f"and must start with a letter or digit, got {value!r}"
        )
    if len(value) + BUCKET_NAME_SUFFIX_LENGTH > 63:
        raise ConfigurationError(
            f"{key} must be at most {63 - BUCKET_NAME_SUFFIX_LENGTH} characters, got {value!r}"
        )

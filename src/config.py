"""
Configuration management for the Lambda function deployer.
"""

import json
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from errors import ValidationError

MEMORY_SIZE_RANGE = (128, 10240)
TIMEOUT_RANGE = (1, 900)
EPHEMERAL_STORAGE_RANGE = (512, 10240)

VALID_ARCHITECTURES = ("x86_64", "arm64")
VALID_TRACING_MODES = ("Active", "PassThrough")
VALID_SNAP_START_APPLY_ON = ("PublishedVersions", "None")

_PARTITION = r"arn:aws(-[a-z0-9-]+)?"
ROLE_ARN_PATTERN = re.compile(_PARTITION + r":iam::\d{12}:role/[\w+=,.@/-]+")
KMS_KEY_ARN_PATTERN = re.compile(_PARTITION + r":kms:[a-z0-9-]+:\d{12}:key/[\w-]+")
CODE_SIGNING_ARN_PATTERN = re.compile(
    _PARTITION + r":lambda:[a-z0-9-]+:\d{12}:code-signing-config:[\w-]+"
)


@dataclass
class DeployConfig:
    """Validated configuration for one deployment run."""

    function_name: str
    region: str
    code_artifacts_dir: str
    handler: Optional[str] = "index.handler"
    runtime: Optional[str] = "nodejs20.x"
    role: Optional[str] = None
    description: Optional[str] = None
    memory_size: Optional[int] = None
    timeout: Optional[int] = None
    ephemeral_storage: Optional[int] = None
    kms_key_arn: Optional[str] = None
    source_kms_key_arn: Optional[str] = None
    code_signing_config_arn: Optional[str] = None
    environment: Optional[Dict[str, str]] = None
    vpc_config: Optional[Dict[str, Any]] = None
    dead_letter_config: Optional[Dict[str, Any]] = None
    tracing_config: Optional[Dict[str, Any]] = None
    layers: Optional[List[str]] = None
    file_system_configs: Optional[List[Dict[str, Any]]] = None
    image_config: Optional[Dict[str, Any]] = None
    snap_start: Optional[Dict[str, Any]] = None
    logging_config: Optional[Dict[str, Any]] = None
    tags: Optional[Dict[str, str]] = None
    architectures: Optional[List[str]] = None
    package_type: Optional[str] = "Zip"
    publish: Optional[bool] = None
    revision_id: Optional[str] = None
    dry_run: bool = False
    s3_bucket: Optional[str] = None
    s3_key: Optional[str] = None
    wait_minutes: int = 5
    max_attempts: int = 5
    verbose: bool = False

    def function_configuration(self) -> Dict[str, Any]:
        """
        Desired configuration keyed by Lambda API field name.

        Unsupplied fields are None; callers normalize before use.
        """
        return {
            "Role": self.role,
            "Handler": self.handler,
            "Description": self.description,
            "MemorySize": self.memory_size,
            "Timeout": self.timeout,
            "Runtime": self.runtime,
            "KMSKeyArn": self.kms_key_arn,
            "EphemeralStorage": (
                {"Size": self.ephemeral_storage} if self.ephemeral_storage else None
            ),
            "VpcConfig": self.vpc_config,
            "Environment": (
                {"Variables": self.environment} if self.environment is not None else None
            ),
            "DeadLetterConfig": self.dead_letter_config,
            "TracingConfig": self.tracing_config,
            "Layers": self.layers,
            "FileSystemConfigs": self.file_system_configs,
            "ImageConfig": self.image_config,
            "SnapStart": self.snap_start,
            "LoggingConfig": self.logging_config,
        }

    def create_only_fields(self) -> Dict[str, Any]:
        """Fields accepted by CreateFunction but not UpdateFunctionConfiguration."""
        return {
            "PackageType": self.package_type,
            "Publish": self.publish,
            "Architectures": self.architectures,
            "CodeSigningConfigArn": self.code_signing_config_arn,
            "Tags": self.tags,
        }

    @classmethod
    def from_args(cls, args) -> "DeployConfig":
        """
        Create and validate configuration from command-line arguments.

        Args:
            args: Parsed argparse arguments

        Returns:
            DeployConfig instance

        Raises:
            ValidationError: On any invalid or missing input
        """
        function_name = _opt(args, "function_name")
        if not function_name:
            raise ValidationError("Function name must be provided")

        region = (
            _opt(args, "region")
            or os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
        )
        if not region:
            raise ValidationError("Region must be provided")

        code_artifacts_dir = _opt(args, "code_artifacts_dir")
        if not code_artifacts_dir:
            raise ValidationError("Code artifacts directory must be provided")

        role = _opt(args, "role")
        if role and not ROLE_ARN_PATTERN.fullmatch(role):
            raise ValidationError(f"Invalid IAM role ARN format: {role}")

        kms_key_arn = _opt(args, "kms_key_arn")
        if kms_key_arn and not KMS_KEY_ARN_PATTERN.fullmatch(kms_key_arn):
            raise ValidationError(f"Invalid KMS key ARN format: {kms_key_arn}")

        source_kms_key_arn = _opt(args, "source_kms_key_arn")
        if source_kms_key_arn and not KMS_KEY_ARN_PATTERN.fullmatch(source_kms_key_arn):
            raise ValidationError(f"Invalid KMS key ARN format: {source_kms_key_arn}")

        code_signing = _opt(args, "code_signing_config_arn")
        if code_signing and not CODE_SIGNING_ARN_PATTERN.fullmatch(code_signing):
            raise ValidationError(f"Invalid code signing config ARN format: {code_signing}")

        publish = _opt(args, "publish")
        wait_minutes = _opt(args, "wait_minutes")
        max_attempts = _opt(args, "max_attempts")

        return cls(
            function_name=function_name,
            region=region,
            code_artifacts_dir=code_artifacts_dir,
            handler=_opt(args, "handler", "index.handler"),
            runtime=_opt(args, "runtime", "nodejs20.x"),
            role=role,
            description=_opt(args, "function_description"),
            memory_size=_ranged(
                _opt(args, "memory_size"), "Memory size", "MB", MEMORY_SIZE_RANGE
            ),
            timeout=_ranged(_opt(args, "timeout"), "Timeout", "seconds", TIMEOUT_RANGE),
            ephemeral_storage=_ranged(
                _opt(args, "ephemeral_storage"),
                "Ephemeral storage",
                "MB",
                EPHEMERAL_STORAGE_RANGE,
            ),
            kms_key_arn=kms_key_arn,
            source_kms_key_arn=source_kms_key_arn,
            code_signing_config_arn=code_signing,
            environment=_json_object(_opt(args, "environment"), "environment"),
            vpc_config=_vpc_config(_opt(args, "vpc_config")),
            dead_letter_config=_dead_letter_config(_opt(args, "dead_letter_config")),
            tracing_config=_tracing_config(_opt(args, "tracing_config")),
            layers=_json_list(_opt(args, "layers"), "layers"),
            file_system_configs=_file_system_configs(_opt(args, "file_system_configs")),
            image_config=_json_object(_opt(args, "image_config"), "image-config"),
            snap_start=_snap_start(_opt(args, "snap_start")),
            logging_config=_json_object(_opt(args, "logging_config"), "logging-config"),
            tags=_json_object(_opt(args, "tags"), "tags"),
            architectures=_architectures(_opt(args, "architectures")),
            package_type=_opt(args, "package_type", "Zip"),
            publish=publish if publish is None else bool(publish),
            revision_id=_opt(args, "revision_id"),
            dry_run=bool(_opt(args, "dry_run", False)),
            s3_bucket=_opt(args, "s3_bucket"),
            s3_key=_opt(args, "s3_key"),
            wait_minutes=5 if wait_minutes is None else int(wait_minutes),
            max_attempts=5 if max_attempts is None else int(max_attempts),
            verbose=bool(_opt(args, "verbose", False)),
        )


def _opt(args, name: str, default: Any = None) -> Any:
    value = getattr(args, name, None)
    if value is None or value == "":
        return default
    return value


def _ranged(value: Any, label: str, unit: str, bounds: tuple) -> Optional[int]:
    if value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number, got: {value}")
    low, high = bounds
    if number < low or number > high:
        raise ValidationError(
            f"{label} must be between {low} {unit} and {high} {unit}, got: {number}"
        )
    return number


def parse_json_input(raw: Optional[str], name: str) -> Any:
    """
    Parse a JSON-valued input.

    Args:
        raw: Raw JSON text, or None when the input was not supplied
        name: Input name used in error messages

    Returns:
        Parsed value, or None

    Raises:
        ValidationError: If the text is not valid JSON
    """
    if raw is None:
        return None
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {name} input: {e}")


def _json_object(raw: Optional[str], name: str) -> Optional[Dict[str, Any]]:
    value = parse_json_input(raw, name)
    if value is not None and not isinstance(value, dict):
        raise ValidationError(f"{name} must be a JSON object")
    return value


def _json_list(raw: Optional[str], name: str) -> Optional[List[Any]]:
    value = parse_json_input(raw, name)
    if value is not None and not isinstance(value, list):
        raise ValidationError(f"{name} must be a JSON array")
    return value


def _vpc_config(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    value = _json_object(raw, "vpc-config")
    if value is None:
        return None
    for key in ("SubnetIds", "SecurityGroupIds"):
        if not isinstance(value.get(key), list):
            raise ValidationError(f"vpc-config must include '{key}' as an array")
    return value


def _dead_letter_config(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    value = _json_object(raw, "dead-letter-config")
    if value is not None and not value.get("TargetArn"):
        raise ValidationError("dead-letter-config must include 'TargetArn'")
    return value


def _tracing_config(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    value = _json_object(raw, "tracing-config")
    if value is not None and value.get("Mode") not in VALID_TRACING_MODES:
        raise ValidationError(
            f"tracing-config Mode must be one of: {', '.join(VALID_TRACING_MODES)}"
        )
    return value


def _file_system_configs(raw: Optional[str]) -> Optional[List[Dict[str, Any]]]:
    value = _json_list(raw, "file-system-configs")
    if value is None:
        return None
    for item in value:
        if not isinstance(item, dict) or not item.get("Arn") or not item.get("LocalMountPath"):
            raise ValidationError(
                "Each file-system-configs entry must include 'Arn' and 'LocalMountPath'"
            )
    return value


def _snap_start(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    value = _json_object(raw, "snap-start")
    if value is not None and value.get("ApplyOn") not in VALID_SNAP_START_APPLY_ON:
        raise ValidationError(
            f"snap-start ApplyOn must be one of: {', '.join(VALID_SNAP_START_APPLY_ON)}"
        )
    return value


def _architectures(raw: Any) -> Optional[List[str]]:
    if raw is None:
        return None
    if isinstance(raw, str):
        values = [part for part in re.split(r"[,\s]+", raw) if part]
    else:
        values = list(raw)
    for arch in values:
        if arch not in VALID_ARCHITECTURES:
            raise ValidationError(
                f"Invalid architecture '{arch}'. Valid values: {', '.join(VALID_ARCHITECTURES)}"
            )
    return values or None

"""
Deployment orchestration for a single Lambda function.

One pass per run: check whether the function exists, create it or
update its configuration (only when it differs from the live one), wait
for the update to settle, then update its code.
"""

import json
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from artifacts import package_code_artifacts
from clients import LambdaDeployClient, S3ArtifactStore, generate_s3_key
from config import DeployConfig
from diff import has_configuration_changed
from errors import ArtifactReadError, DeployError, OperationError, ValidationError, classify_error
from models import CodePackage, DeployResult
from normalize import normalize

logger = logging.getLogger(__name__)

DRY_RUN_CREATE_MESSAGE = (
    "DRY RUN MODE can only be used for updating function code of existing functions"
)
MISSING_ROLE_MESSAGE = "Role ARN must be provided when creating a new function"
PLACEHOLDER_ACCOUNT_ID = "000000000000"
PLACEHOLDER_VERSION = "$LATEST"


class FunctionDeployer:
    """Creates or updates one Lambda function from a code artifacts directory."""

    def __init__(
        self,
        config: DeployConfig,
        lambda_api: Optional[LambdaDeployClient] = None,
        artifact_store: Optional[S3ArtifactStore] = None,
        packager: Callable[[str], str] = package_code_artifacts,
    ):
        """
        Initialize the deployer.

        Args:
            config: Validated deployment configuration (carries dry_run)
            lambda_api: Lambda client; built from config when omitted
            artifact_store: S3 store; built on first use when omitted
            packager: Turns the artifacts directory into a zip path
        """
        self.config = config
        self.api = lambda_api or LambdaDeployClient(
            region=config.region, max_attempts=config.max_attempts
        )
        self._store = artifact_store
        self.packager = packager
        self.s3_key: Optional[str] = config.s3_key
        self.result = DeployResult(function_name=config.function_name, status="pending")

    @property
    def store(self) -> S3ArtifactStore:
        if self._store is None:
            self._store = S3ArtifactStore(region=self.config.region)
        return self._store

    def run(self) -> DeployResult:
        """
        Execute the deployment.

        Returns:
            DeployResult with the function ARN and version when available

        Raises:
            DeployError: Terminal failure with an operator-facing message
            Exception: Unclassified errors, left to the top-level handler
        """
        cfg = self.config
        self.result.start_time = time.time()
        self._log_banner()

        if cfg.dry_run:
            logger.info("DRY RUN MODE: No AWS resources will be created or modified")

        logger.info(f"Packaging code artifacts from {cfg.code_artifacts_dir}")
        zip_path = self.packager(cfg.code_artifacts_dir)

        if cfg.s3_bucket and not self.s3_key:
            self.s3_key = generate_s3_key(cfg.function_name)
            logger.info(f"No S3 key provided. Auto-generated key: {self.s3_key}")

        logger.info(f"Checking if {cfg.function_name} exists")
        if not self.api.function_exists(cfg.function_name):
            self._create_function(zip_path)
        elif self._update_configuration():
            self._update_code(zip_path)

        self.result.end_time = time.time()
        self._log_summary()
        return self.result

    def _create_function(self, zip_path: str) -> None:
        cfg = self.config
        if cfg.dry_run:
            raise ValidationError(DRY_RUN_CREATE_MESSAGE)

        logger.info(f"Function {cfg.function_name} doesn't exist, creating new function")
        if not cfg.role:
            raise ValidationError(MISSING_ROLE_MESSAGE)

        code = self._code_package(zip_path)
        settings = dict(cfg.function_configuration())
        settings.update(cfg.create_only_fields())
        request = {"FunctionName": cfg.function_name, "Code": code.fields()}
        request.update(normalize(settings) or {})

        logger.info(f"Creating new Lambda function: {cfg.function_name}")
        try:
            response = self.api.create_function(request)
        except Exception as e:
            raise OperationError(classify_error(e, action="create function")) from e

        self._set_outputs(response.get("FunctionArn"), response.get("Version"))
        self.result.status = "created"
        logger.info("Lambda function created successfully")

    def _update_configuration(self) -> bool:
        """
        Update the function configuration if it changed.

        Returns:
            False when the run must stop before the code update (dry run
            with pending configuration changes), True otherwise
        """
        cfg = self.config
        logger.info(f"Getting current configuration for function {cfg.function_name}")
        current = self.api.get_function_configuration(cfg.function_name)

        desired = cfg.function_configuration()
        if not has_configuration_changed(current, desired):
            logger.info("No configuration changes detected")
            return True

        if cfg.dry_run:
            logger.info("[DRY RUN] Configuration updates are not simulated in dry run mode")
            self.result.status = "dry_run_config_skipped"
            return False

        request = {"FunctionName": cfg.function_name}
        request.update(normalize(desired) or {})

        logger.info(f"Updating function configuration for {cfg.function_name}")
        try:
            self.api.update_function_configuration(request)
        except Exception as e:
            raise OperationError(
                classify_error(e, action="update function configuration")
            ) from e

        self.api.wait_until_updated(cfg.function_name, cfg.wait_minutes)
        self.result.config_updated = True
        return True

    def _update_code(self, zip_path: str) -> None:
        cfg = self.config
        logger.info(f"Updating function code for {cfg.function_name} with {zip_path}")

        code = self._code_package(zip_path)
        options = normalize(
            {
                "Architectures": cfg.architectures,
                "Publish": cfg.publish,
                "RevisionId": cfg.revision_id,
            }
        )
        request = {"FunctionName": cfg.function_name}
        request.update(code.fields())
        request.update(options or {})

        try:
            if cfg.dry_run:
                logger.info("[DRY RUN] Would update function code with parameters:")
                logger.info(json.dumps(_loggable(request), indent=2))
                request["DryRun"] = True
                response = self.api.update_function_code(request)
                logger.info("[DRY RUN] Function code validation passed")
                self._set_outputs(
                    response.get("FunctionArn") or self._placeholder_arn(),
                    response.get("Version") or PLACEHOLDER_VERSION,
                )
                self.result.status = "dry_run"
                logger.info("[DRY RUN] Function code update simulation completed")
            else:
                response = self.api.update_function_code(request)
                self._set_outputs(response.get("FunctionArn"), response.get("Version"))
                self.result.status = "updated"
        except Exception as e:
            raise OperationError(classify_error(e, action="update function code")) from e

        logger.info("Lambda function deployment completed successfully")

    def _code_package(self, zip_path: str) -> CodePackage:
        """Upload to S3 or read the zip, depending on the deployment method."""
        cfg = self.config
        extra = normalize({"SourceKmsKeyArn": cfg.source_kms_key_arn}) or {}

        if cfg.s3_bucket:
            logger.info(
                f"Using S3 deployment method with bucket: {cfg.s3_bucket}, key: {self.s3_key}"
            )
            try:
                location = self.store.upload(zip_path, cfg.s3_bucket, self.s3_key)
            except DeployError:
                raise
            except Exception as e:
                raise OperationError(
                    classify_error(e, action="upload package to S3")
                ) from e
            logger.info(
                f"Successfully uploaded package to S3: s3://{location.bucket}/{location.key}"
            )
            return CodePackage(s3=location, extra=extra)

        return CodePackage(zip_bytes=self._read_package(zip_path), extra=extra)

    def _read_package(self, zip_path: str) -> bytes:
        try:
            with open(zip_path, "rb") as f:
                data = f.read()
        except OSError as e:
            message = f"Failed to read Lambda deployment package at {zip_path}: {e}."
            if isinstance(e, FileNotFoundError):
                message += (
                    " File not found. Ensure the code artifacts directory "
                    f"\"{self.config.code_artifacts_dir}\" contains the required files."
                )
            elif isinstance(e, PermissionError):
                message += " Permission denied. Check file access permissions."
            raise ArtifactReadError(message) from e

        logger.info(f"Zip file read successfully, size: {len(data)} bytes")
        return data

    def _placeholder_arn(self) -> str:
        cfg = self.config
        return (
            f"arn:aws:lambda:{cfg.region}:{PLACEHOLDER_ACCOUNT_ID}:"
            f"function:{cfg.function_name}"
        )

    def _set_outputs(self, function_arn: Optional[str], version: Optional[str]) -> None:
        self.result.function_arn = function_arn
        if version:
            self.result.version = version

    def _log_banner(self) -> None:
        cfg = self.config
        logger.info("=" * 70)
        logger.info("AWS Lambda Function Deployment")
        logger.info("=" * 70)
        logger.info(f"Function: {cfg.function_name}")
        logger.info(f"Region: {cfg.region}")
        logger.info(f"Artifacts: {cfg.code_artifacts_dir}")
        logger.info(f"Deployment method: {'S3' if cfg.s3_bucket else 'direct upload'}")
        logger.info(f"Dry run: {cfg.dry_run}")
        logger.info(f"Start time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        logger.info("=" * 70)

    def _log_summary(self) -> None:
        r = self.result
        logger.info("")
        logger.info("=" * 70)
        logger.info("DEPLOYMENT REPORT")
        logger.info("-" * 40)
        logger.info(f"{'Function':<20}: {r.function_name}")
        logger.info(f"{'Status':<20}: {r.status}")
        logger.info(f"{'Config updated':<20}: {r.config_updated}")
        logger.info(f"{'Function ARN':<20}: {r.function_arn or 'N/A'}")
        logger.info(f"{'Version':<20}: {r.version or 'N/A'}")
        if r.duration_seconds is not None:
            logger.info(f"{'Duration':<20}: {r.duration_seconds:.1f}s")
        logger.info("=" * 70)


def _loggable(request: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a request safe to log: binary payloads replaced by their size."""
    copy = dict(request)
    if isinstance(copy.get("ZipFile"), (bytes, bytearray)):
        copy["ZipFile"] = f"<Binary data of length {len(copy['ZipFile'])} bytes>"
    return copy

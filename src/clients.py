"""
AWS clients for Lambda function deployment (Lambda and S3).
"""

import logging
import os
import re
from datetime import datetime, timezone
from typing import Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, WaiterError

from errors import (
    DeployError,
    FunctionNotFoundError,
    ValidationError,
    WaitPermissionError,
    WaitTimeoutError,
)
from models import S3Location

logger = logging.getLogger(__name__)

DEFAULT_WAIT_MINUTES = 5
MAX_WAIT_MINUTES = 30
WAITER_DELAY_SECONDS = 2

S3_KEY_PREFIX = "lambda-deployments"


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def _status_code(exc: ClientError) -> Optional[int]:
    return exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")


class LambdaDeployClient:
    """Thin wrapper over the boto3 Lambda client used by the deployer."""

    def __init__(
        self,
        region: str,
        max_attempts: int = 5,
        client=None,
    ):
        """
        Initialize the Lambda client.

        Args:
            region: AWS region
            max_attempts: Total attempts for botocore's adaptive retry mode
            client: Pre-built boto3 Lambda client (tests)
        """
        self.region = region
        self.max_attempts = max_attempts
        self.client = client or boto3.client(
            "lambda",
            region_name=region,
            config=Config(retries={"max_attempts": max_attempts, "mode": "adaptive"}),
        )

    def get_function_configuration(self, function_name: str) -> Dict:
        """Fetch the live configuration of a function."""
        response = self.client.get_function_configuration(FunctionName=function_name)
        response.pop("ResponseMetadata", None)
        return response

    def function_exists(self, function_name: str) -> bool:
        """
        Check whether a function exists.

        Args:
            function_name: Function name or ARN

        Returns:
            True if found, False on ResourceNotFoundException

        Raises:
            ClientError: For any other API error
        """
        try:
            self.client.get_function_configuration(FunctionName=function_name)
            return True
        except ClientError as e:
            if _error_code(e) == "ResourceNotFoundException":
                return False
            raise

    def create_function(self, request: Dict) -> Dict:
        """Call CreateFunction with a fully built request."""
        return self.client.create_function(**request)

    def update_function_configuration(self, request: Dict) -> Dict:
        """Call UpdateFunctionConfiguration with a fully built request."""
        return self.client.update_function_configuration(**request)

    def update_function_code(self, request: Dict) -> Dict:
        """Call UpdateFunctionCode; honours a DryRun flag in the request."""
        return self.client.update_function_code(**request)

    def wait_until_updated(
        self, function_name: str, wait_minutes: int = DEFAULT_WAIT_MINUTES
    ) -> None:
        """
        Block until the function's last update has finished.

        Args:
            function_name: Function name or ARN
            wait_minutes: Wait budget in minutes, clamped to MAX_WAIT_MINUTES

        Raises:
            WaitTimeoutError: Budget exhausted
            FunctionNotFoundError: Function no longer exists
            WaitPermissionError: Status check was denied
            DeployError: Any other waiter failure
        """
        if wait_minutes > MAX_WAIT_MINUTES:
            wait_minutes = MAX_WAIT_MINUTES
            logger.info(f"Wait time capped to maximum of {MAX_WAIT_MINUTES} minutes")

        logger.info(
            f"Waiting for function update to complete. Will wait for {wait_minutes} minutes"
        )

        max_attempts = max(1, (wait_minutes * 60) // WAITER_DELAY_SECONDS)
        waiter = self.client.get_waiter("function_updated")
        try:
            waiter.wait(
                FunctionName=function_name,
                WaiterConfig={"Delay": WAITER_DELAY_SECONDS, "MaxAttempts": max_attempts},
            )
        except WaiterError as e:
            last = e.last_response or {}
            code = last.get("Error", {}).get("Code", "")
            status = last.get("ResponseMetadata", {}).get("HTTPStatusCode")
            reason = str(e.kwargs.get("reason", ""))

            if code == "ResourceNotFoundException":
                raise FunctionNotFoundError(f"Function {function_name} not found") from e
            if status == 403:
                raise WaitPermissionError(
                    f"Permission denied while checking function {function_name} status"
                ) from e
            if "Max attempts exceeded" in reason:
                raise WaitTimeoutError(
                    f"Timed out waiting for function {function_name} update to complete "
                    f"after {wait_minutes} minutes"
                ) from e

            logger.warning(f"Function update check error: {e}")
            raise DeployError(
                f"Error waiting for function {function_name} update: {e}"
            ) from e

        logger.info("Function update completed successfully")


def validate_bucket_name(name: Optional[str]) -> bool:
    """
    Check a bucket name against the S3 naming rules.

    Args:
        name: Candidate bucket name

    Returns:
        True if the name is valid
    """
    if not name or not isinstance(name, str):
        return False
    if len(name) < 3 or len(name) > 63:
        return False
    if not re.fullmatch(r"[a-z0-9.-]+", name):
        return False
    if not re.fullmatch(r"[a-z0-9].*[a-z0-9]", name):
        return False
    if re.fullmatch(r"(\d{1,3}\.){3}\d{1,3}", name):
        return False
    if ".." in name:
        return False
    for prefix in ("xn--", "sthree-", "amzn-s3-demo-bucket"):
        if name.startswith(prefix):
            return False
    return True


def generate_s3_key(
    function_name: str,
    now: Optional[datetime] = None,
    commit_sha: Optional[str] = None,
) -> str:
    """
    Build a unique S3 key for a deployment package.

    Args:
        function_name: Lambda function name
        now: Timestamp to use (defaults to current UTC time)
        commit_sha: Commit hash (defaults to $GITHUB_SHA)

    Returns:
        Key like lambda-deployments/<fn>/2024-01-02-03-04-05-123-abcdef1.zip
    """
    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime("%Y-%m-%d-%H-%M-%S-") + f"{now.microsecond // 1000:03d}"

    sha = commit_sha if commit_sha is not None else os.environ.get("GITHUB_SHA", "")
    suffix = f"-{sha[:7]}" if sha else ""

    return f"{S3_KEY_PREFIX}/{function_name}/{timestamp}{suffix}.zip"


class S3ArtifactStore:
    """Uploads deployment packages to S3, creating the bucket if needed."""

    def __init__(self, region: str, client=None):
        self.region = region
        self.client = client or boto3.client("s3", region_name=region)

    def bucket_exists(self, bucket: str) -> bool:
        """
        Check whether a bucket exists and is reachable in this region.

        Raises:
            DeployError: Bucket lives in another region, or access denied
            ClientError: Any other S3 error
        """
        try:
            self.client.head_bucket(Bucket=bucket)
            logger.info(f"S3 bucket {bucket} exists")
            return True
        except ClientError as e:
            status = _status_code(e)
            code = _error_code(e)
            if status == 404 or code in ("NotFound", "404", "NoSuchBucket"):
                logger.info(f"S3 bucket {bucket} does not exist")
                return False

            logger.error(f"Error checking if bucket exists: {status or code} - {e}")
            if status == 301:
                logger.error(
                    f"REGION MISMATCH ERROR: The bucket \"{bucket}\" exists but in a "
                    f"different region than specified ({self.region})."
                )
                raise DeployError(
                    f"Bucket \"{bucket}\" exists in a different region than {self.region}"
                ) from e
            if status == 403 or code in ("AccessDenied", "403"):
                raise DeployError(
                    "Access denied when checking bucket. Ensure your IAM policy includes "
                    f"s3:HeadBucket permission for bucket: {bucket}"
                ) from e
            raise

    def create_bucket(self, bucket: str) -> None:
        """
        Create a bucket in this store's region.

        Raises:
            ValidationError: Invalid bucket name
            DeployError: Access denied
            ClientError: Any other S3 error (including name already taken)
        """
        if not validate_bucket_name(bucket):
            raise ValidationError(
                f"Invalid bucket name: \"{bucket}\". Bucket names must be 3-63 characters, "
                "lowercase, start/end with a letter/number, and contain only letters, "
                "numbers, dots, and hyphens."
            )

        request = {"Bucket": bucket}
        if self.region != "us-east-1":
            request["CreateBucketConfiguration"] = {"LocationConstraint": self.region}

        logger.info(f"Creating S3 bucket: {bucket} in region: {self.region}")
        try:
            response = self.client.create_bucket(**request)
        except ClientError as e:
            code = _error_code(e)
            if code in ("BucketAlreadyExists", "BucketAlreadyOwnedByYou"):
                logger.warning(
                    f"Bucket name {bucket} is already taken but may be owned by another account."
                )
                raise
            if _status_code(e) == 403:
                raise DeployError(
                    f"Access denied when creating bucket {bucket}. Ensure your IAM policy "
                    "includes s3:CreateBucket permission."
                ) from e
            if code == "InvalidBucketName":
                logger.error(f"The bucket name \"{bucket}\" is invalid.")
            raise

        logger.info(f"Successfully created S3 bucket: {bucket}")
        logger.debug(f"Bucket location: {response.get('Location')}")

    def upload(self, zip_path: str, bucket: str, key: str) -> S3Location:
        """
        Upload a deployment package, creating the bucket when missing.

        Args:
            zip_path: Local path to the zip archive
            bucket: Target bucket
            key: Target key

        Returns:
            S3Location of the uploaded object
        """
        logger.info(f"Uploading Lambda deployment package to S3: s3://{bucket}/{key}")

        if not self.bucket_exists(bucket):
            logger.info(f"Bucket {bucket} does not exist. Attempting to create it...")
            self.create_bucket(bucket)

        try:
            with open(zip_path, "rb") as f:
                body = f.read()
        except OSError as e:
            raise DeployError(
                f"Cannot access deployment package at {zip_path}: {e}"
            ) from e
        logger.info(f"Read deployment package, size: {len(body)} bytes")

        try:
            response = self.client.put_object(Bucket=bucket, Key=key, Body=body)
        except ClientError as e:
            logger.error(f"Failed to upload file to S3: {_error_code(e)} - {e}")
            if _status_code(e) == 403:
                raise DeployError(
                    "Access denied when uploading to S3. Ensure your IAM policy includes "
                    "s3:PutObject permission."
                ) from e
            raise

        logger.info(f"S3 upload successful, file size: {len(body)} bytes")
        return S3Location(bucket=bucket, key=key, version_id=response.get("VersionId"))

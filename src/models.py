"""
Data models for the Lambda function deployer.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class DeployResult:
    """Result of one deployment run."""

    function_name: str
    status: str  # "created", "updated", "dry_run", "dry_run_config_skipped"
    function_arn: Optional[str] = None
    version: Optional[str] = None
    config_updated: bool = False
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    def outputs(self) -> Dict[str, str]:
        """Pipeline outputs published by the run."""
        values = {}
        if self.function_arn:
            values["function-arn"] = self.function_arn
        if self.version:
            values["version"] = self.version
        return values


@dataclass
class S3Location:
    """Uploaded deployment package."""

    bucket: str
    key: str
    version_id: Optional[str] = None

    def code_fields(self) -> Dict[str, str]:
        return {"S3Bucket": self.bucket, "S3Key": self.key}


@dataclass
class CodePackage:
    """Code payload for CreateFunction/UpdateFunctionCode."""

    zip_bytes: Optional[bytes] = None
    s3: Optional[S3Location] = None
    extra: Dict[str, str] = field(default_factory=dict)

    def fields(self) -> Dict:
        if self.s3 is not None:
            values = dict(self.s3.code_fields())
        else:
            values = {"ZipFile": self.zip_bytes}
        values.update(self.extra)
        return values

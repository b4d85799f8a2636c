"""
AWS Lambda Function Deployer.
"""

from config import DeployConfig
from deployer import FunctionDeployer
from log_utils import setup_logging
from models import CodePackage, DeployResult, S3Location

__all__ = [
    "DeployConfig",
    "FunctionDeployer",
    "setup_logging",
    "CodePackage",
    "DeployResult",
    "S3Location",
]

"""Console entry point for the Lambda function deployer CLI."""

from __future__ import annotations

import argparse
import logging
import os
from typing import List

from config import DeployConfig
from deployer import FunctionDeployer
from errors import classify_error
from log_utils import setup_logging
from models import DeployResult

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description=(
            "Package a directory of code artifacts and create or update an AWS "
            "Lambda function. Configuration is only updated when it differs from "
            "the live function."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  # Validate a code update without applying it\n"
            "  lambda-deploy --function-name my-fn --code-artifacts-dir ./dist --dry-run\n\n"
            "  # Create or update a function through S3\n"
            "  lambda-deploy --function-name my-fn --code-artifacts-dir ./dist \\\n"
            "      --role arn:aws:iam::123456789012:role/lambda-role --s3-bucket my-bucket"
        ),
    )

    required = parser.add_argument_group("required arguments")
    required.add_argument("--function-name", required=True, help="Lambda function name")
    required.add_argument(
        "--code-artifacts-dir",
        required=True,
        metavar="DIR",
        help="Directory of code artifacts to zip and deploy",
    )
    required.add_argument(
        "--region", help="AWS region (defaults to $AWS_REGION / $AWS_DEFAULT_REGION)"
    )

    function = parser.add_argument_group("function configuration")
    function.add_argument("--handler", default="index.handler")
    function.add_argument("--runtime", default="nodejs20.x")
    function.add_argument(
        "--role", metavar="ARN", help="Execution role, required to create a function"
    )
    function.add_argument("--function-description")
    function.add_argument("--memory-size", type=int, metavar="MB")
    function.add_argument("--timeout", type=int, metavar="SECONDS")
    function.add_argument("--ephemeral-storage", type=int, metavar="MB")
    function.add_argument("--kms-key-arn", metavar="ARN")
    function.add_argument("--code-signing-config-arn", metavar="ARN")
    function.add_argument("--environment", metavar="JSON", help="Environment variables")
    function.add_argument("--vpc-config", metavar="JSON")
    function.add_argument("--dead-letter-config", metavar="JSON")
    function.add_argument("--tracing-config", metavar="JSON")
    function.add_argument("--layers", metavar="JSON")
    function.add_argument("--file-system-configs", metavar="JSON")
    function.add_argument("--image-config", metavar="JSON")
    function.add_argument("--snap-start", metavar="JSON")
    function.add_argument("--logging-config", metavar="JSON")
    function.add_argument("--tags", metavar="JSON")
    function.add_argument("--architectures", help="x86_64 or arm64")
    function.add_argument("--package-type", default="Zip")

    deploy = parser.add_argument_group("deployment")
    deploy.add_argument(
        "--dry-run",
        action="store_true",
        help=(
            "Validate the code update without applying it. Configuration updates "
            "and function creation are not simulated."
        ),
    )
    deploy.add_argument(
        "--publish",
        action="store_true",
        default=None,
        help="Publish a new version after updating the code",
    )
    deploy.add_argument("--revision-id", help="Only update if the revision ID matches")
    deploy.add_argument("--source-kms-key-arn", metavar="ARN")
    deploy.add_argument("--s3-bucket", help="Deploy through this S3 bucket")
    deploy.add_argument("--s3-key", help="S3 key (auto-generated when omitted)")
    deploy.add_argument(
        "--wait-minutes",
        type=int,
        default=5,
        help="Maximum wait for a configuration update to settle (capped at 30)",
    )
    deploy.add_argument(
        "--max-attempts",
        type=int,
        default=5,
        help="Total attempts per API call, including botocore retries",
    )

    logging_group = parser.add_argument_group("logging and output")
    logging_group.add_argument("--verbose", action="store_true")
    logging_group.add_argument("--log-file", default="lambda-deploy.log")

    return parser


def write_outputs(result: DeployResult, output_path: str | None = None) -> None:
    """
    Publish run outputs to the log and, when set, to $GITHUB_OUTPUT.

    Args:
        result: Deployment result
        output_path: Output file (defaults to $GITHUB_OUTPUT)
    """
    output_path = output_path or os.environ.get("GITHUB_OUTPUT")
    outputs = result.outputs()
    for name, value in outputs.items():
        logger.info(f"Output {name}: {value}")

    if output_path and outputs:
        with open(output_path, "a") as f:
            for name, value in outputs.items():
                f.write(f"{name}={value}\n")


def main(argv: List[str] | None = None) -> int:
    """CLI main for console_scripts entry point."""
    parser = build_parser()
    args = parser.parse_args(args=argv)

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    deployer = None
    try:
        config = DeployConfig.from_args(args)
        deployer = FunctionDeployer(config)
        result = deployer.run()
    except Exception as e:
        failure = classify_error(e)
        logger.error(failure.message)
        if failure.trace:
            logger.debug(failure.trace)
        if deployer is not None:
            write_outputs(deployer.result)
        return 1

    write_outputs(result)
    return 0

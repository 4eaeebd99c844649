#!/usr/bin/env python3
"""
Command-line interface for the Lambda File Deployer.
"""
import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from lambda_file_deployer.config import BACKEND_CHOICES, DeployerSettings
from lambda_file_deployer.credentials import profiles
from lambda_file_deployer.main import LambdaDeployer
from lambda_file_deployer.ui import ConsoleInterface


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Deploy a single source file as an AWS Lambda function"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Deploy command
    deploy_parser = subparsers.add_parser("deploy", help="Deploy a source file to a Lambda function")
    deploy_parser.add_argument(
        "file",
        help="Source file to deploy"
    )
    deploy_parser.add_argument(
        "--function-name",
        help="Name of the Lambda function (default: asked for, derived from the file name)"
    )
    deploy_parser.add_argument(
        "--region",
        help="AWS region to deploy to (default: region stored with the credentials)"
    )
    deploy_parser.add_argument(
        "--backend",
        choices=BACKEND_CHOICES,
        help="Use the AWS CLI, boto3, or pick automatically (default: auto)"
    )
    deploy_parser.add_argument(
        "--memory-size",
        type=int,
        help="Memory size for a new Lambda function in MB (default: 128)"
    )
    deploy_parser.add_argument(
        "--timeout",
        type=int,
        help="Timeout for a new Lambda function in seconds (default: 30)"
    )
    deploy_parser.add_argument(
        "--role-arn",
        help="Execution role ARN for a new Lambda function (default: derived from the account ID)"
    )

    # Credential commands
    subparsers.add_parser("reset-credentials", help="Remove the saved AWS credentials")
    subparsers.add_parser("update-credentials", help="Replace the saved AWS credentials")
    subparsers.add_parser("show-credentials", help="Show the saved AWS credentials, masked")
    subparsers.add_parser("list-profiles", help="List the AWS CLI profiles found on this machine")

    # General options
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    return parser.parse_args(args)


def _apply_overrides(settings: DeployerSettings, args: argparse.Namespace) -> DeployerSettings:
    overrides = {}
    if getattr(args, "backend", None) is not None:
        overrides["backend"] = args.backend
    if getattr(args, "memory_size", None) is not None:
        overrides["memory_size"] = args.memory_size
    if getattr(args, "timeout", None) is not None:
        overrides["timeout"] = args.timeout
    if getattr(args, "role_arn", None) is not None:
        overrides["role_arn"] = args.role_arn
    return replace(settings, **overrides) if overrides else settings


def list_profiles_command(settings: DeployerSettings, ui: ConsoleInterface) -> int:
    """Handle the list-profiles command."""
    paths = profiles.AwsConfigPaths(
        credentials_file=settings.aws_credentials_file,
        config_file=settings.aws_config_file,
    )
    names = sorted(profiles.list_profiles(paths))
    if not names:
        ui.info("No AWS CLI profiles found")
        return 0
    for name in names:
        ui.info(name)
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parsed_args = parse_args(args)
    setup_logging(parsed_args.verbose)
    logger = logging.getLogger("lambda_file_deployer.cli")

    if not parsed_args.command:
        print("No command specified. Use --help for usage information.")
        return 1

    ui = ConsoleInterface()
    try:
        settings = _apply_overrides(DeployerSettings.from_env(), parsed_args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        ui.error(f"Invalid configuration: {e}")
        return 1

    if parsed_args.command == "list-profiles":
        return list_profiles_command(settings, ui)

    deployer = LambdaDeployer(ui=ui, settings=settings)

    if parsed_args.command == "deploy":
        ok = deployer.deploy_file(
            parsed_args.file,
            function_name=parsed_args.function_name,
            region=parsed_args.region,
        )
    elif parsed_args.command == "reset-credentials":
        ok = deployer.reset_credentials()
    elif parsed_args.command == "update-credentials":
        ok = deployer.update_credentials()
    else:
        ok = deployer.show_credentials()

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())

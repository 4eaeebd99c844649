"""
Main deployment entry point for the Lambda File Deployer.

This module wires the credential resolver and the Lambda function deployer
together behind the four user commands: deploy a file, reset, update and show
the cached credentials.
"""
import logging
import os
import re
from typing import Optional

from lambda_file_deployer.config import DeployerSettings
from lambda_file_deployer.credentials.profiles import AwsConfigPaths
from lambda_file_deployer.credentials.resolver import CredentialResolver, CredentialStatus
from lambda_file_deployer.credentials.store import CredentialStore
from lambda_file_deployer.errors import ValidationError
from lambda_file_deployer.lambda_func.function_deployer import LambdaFunctionDeployer
from lambda_file_deployer.ui import UserInterface

logger = logging.getLogger(__name__)

FUNCTION_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def suggest_function_name(file_path: str) -> str:
    """Derive a function name from a file's base name."""
    base = os.path.splitext(os.path.basename(file_path))[0]
    return re.sub(r"[^A-Za-z0-9_-]", "-", base)


def validate_function_name(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError("Function name is required")
    if not FUNCTION_NAME_PATTERN.match(value):
        raise ValidationError(
            "Function name may only contain letters, digits, hyphens and underscores"
        )
    return value


class LambdaDeployer:
    """
    Main class for deploying source files to AWS Lambda functions.

    Every command reports its outcome through the user interface; no exception
    escapes to the caller.
    """

    def __init__(
        self,
        ui: UserInterface,
        settings: Optional[DeployerSettings] = None,
        resolver: Optional[CredentialResolver] = None,
        function_deployer: Optional[LambdaFunctionDeployer] = None,
    ):
        """
        Initialize the Lambda Deployer.

        Args:
            ui: User interaction capabilities
            settings: Deployer settings (defaults to settings from the environment)
            resolver: Credential resolver (built from the settings if omitted)
            function_deployer: Deploy executor (built from the settings if omitted)
        """
        self.ui = ui
        self.settings = settings or DeployerSettings.from_env()
        self.resolver = resolver or CredentialResolver(
            store=CredentialStore(self.settings.credentials_path),
            ui=ui,
            config_paths=AwsConfigPaths(
                credentials_file=self.settings.aws_credentials_file,
                config_file=self.settings.aws_config_file,
            ),
            prompt_delay=self.settings.prompt_delay,
        )
        self.function_deployer = function_deployer or LambdaFunctionDeployer(
            resolver=self.resolver,
            settings=self.settings,
        )

    def _ensure_credentials(self) -> bool:
        status = self.resolver.resolve_credentials()
        if status.available:
            return True
        if status is CredentialStatus.CANCELLED:
            self.ui.info("Deploy cancelled")
            return False
        if status is CredentialStatus.INVALID_PROFILE:
            return False

        if not self.settings.prompt_when_missing:
            self.ui.error("AWS credentials could not be set!")
            return False
        self.ui.warning("No AWS credentials configured, please enter them")
        self.resolver.prompt_for_credentials()
        return True

    def _get_function_name(self, file_path: str, function_name: Optional[str]) -> Optional[str]:
        if function_name:
            return validate_function_name(function_name)

        suggested = suggest_function_name(file_path)
        return self.ui.prompt(
            "Lambda function name",
            value=suggested or None,
            placeholder=suggested,
            validate=validate_function_name,
        )

    def deploy_file(
        self,
        file_path: str,
        function_name: Optional[str] = None,
        region: Optional[str] = None,
    ) -> bool:
        """
        Deploy a source file, asking for credentials and a function name as needed.

        Args:
            file_path: Path of the source file
            function_name: Function name (asked for if not provided)
            region: Region overriding the one stored with the credentials

        Returns:
            True if the deploy succeeded
        """
        try:
            if not os.path.isfile(file_path):
                self.ui.error(f"File not found: {file_path}")
                return False

            if not self._ensure_credentials():
                return False

            name = self._get_function_name(file_path, function_name)
            if not name:
                self.ui.error("Lambda function name is required")
                return False

            with self.ui.progress(f"Deploying Lambda: {name}"):
                result = self.function_deployer.deploy_function(file_path, name, region=region)

            if result.success:
                self.ui.success(f"Lambda successfully deployed: {name}")
                return True

            self.ui.error(f"Deploy error: {result.error}")
            return False

        except Exception as e:
            logger.error(f"Deploy of {file_path} failed: {e}", exc_info=True)
            self.ui.error(f"An error occurred during the deploy process: {e}")
            return False

    def reset_credentials(self) -> bool:
        try:
            self.resolver.reset_credentials()
            return True
        except Exception as e:
            logger.error(f"Resetting credentials failed: {e}", exc_info=True)
            self.ui.error(f"Error resetting credentials: {e}")
            return False

    def update_credentials(self) -> bool:
        try:
            self.resolver.update_credentials()
            return True
        except Exception as e:
            logger.error(f"Updating credentials failed: {e}", exc_info=True)
            self.ui.error(f"Error updating credentials: {e}")
            return False

    def show_credentials(self) -> bool:
        try:
            self.resolver.show_credentials()
            return True
        except Exception as e:
            logger.error(f"Showing credentials failed: {e}", exc_info=True)
            self.ui.error(f"Error displaying credentials: {e}")
            return False

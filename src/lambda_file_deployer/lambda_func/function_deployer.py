"""
Lambda function deployer module.
Handles deployment of single source files to AWS Lambda functions.
"""
import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from lambda_file_deployer.config import DeployerSettings
from lambda_file_deployer.credentials.models import Credentials, validate_region
from lambda_file_deployer.credentials.resolver import CredentialResolver
from lambda_file_deployer.errors import CredentialError, ExternalToolError, LambdaDeployerError
from lambda_file_deployer.lambda_func.backend import (
    DeployBackend,
    DeployResult,
    FunctionSpec,
    FunctionState,
)
from lambda_file_deployer.lambda_func.cli_backend import CliDeployBackend, is_cli_available
from lambda_file_deployer.lambda_func.sdk_backend import SdkDeployBackend

logger = logging.getLogger(__name__)

PLACEHOLDER_ACCOUNT_ID = "123456789012"

NODE_RUNTIME = "nodejs20.x"
PYTHON_RUNTIME = "python3.12"
JAVA_RUNTIME = "java21"

_RUNTIMES = {
    ".js": NODE_RUNTIME,
    ".mjs": NODE_RUNTIME,
    ".ts": NODE_RUNTIME,
    ".py": PYTHON_RUNTIME,
    ".java": JAVA_RUNTIME,
}


def get_runtime(file_path: str) -> str:
    """Lambda runtime for a source file, based on its extension."""
    ext = os.path.splitext(file_path)[1].lower()
    return _RUNTIMES.get(ext, NODE_RUNTIME)


def get_handler(file_path: str) -> str:
    """Lambda handler for a source file, based on its extension and base name."""
    base, ext = os.path.splitext(os.path.basename(file_path))
    ext = ext.lower()
    if ext == ".py":
        return f"{base}.lambda_handler"
    if ext == ".java":
        return f"com.example.{base}::handleRequest"
    return f"{base}.handler"


class FunctionLocks:
    """
    Per-function-name locks.

    Deploys of the same function name are serialized; different names proceed
    independently. An entry lives only while some deploy holds or waits for
    it, so the registry never outgrows the number of deploys in flight.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # function name -> [lock, number of holders and waiters]
        self._locks: Dict[str, List] = {}

    def active(self) -> int:
        """Number of function names currently locked or awaited."""
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, function_name: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(function_name, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[function_name]


_function_locks = FunctionLocks()


def select_backend(credentials: Credentials, settings: DeployerSettings) -> DeployBackend:
    """
    Pick the deploy backend for one deploy.

    With the "auto" setting the AWS CLI is used when it is installed and boto3
    otherwise.

    Raises:
        ExternalToolError: If the AWS CLI is required but not available
    """
    if settings.backend == "sdk":
        return SdkDeployBackend(credentials)

    if is_cli_available(settings.aws_executable):
        return CliDeployBackend(
            credentials,
            executable=settings.aws_executable,
            timeout=settings.command_timeout,
        )

    if settings.backend == "cli":
        raise ExternalToolError(f"AWS CLI ({settings.aws_executable}) is not available")

    logger.info("AWS CLI not available, falling back to boto3")
    return SdkDeployBackend(credentials)


class LambdaFunctionDeployer:
    """
    Deploys single source files to AWS Lambda functions.

    This class handles:
    - Looking up the credentials for the deploy
    - Selecting the AWS CLI or boto3 backend
    - Creating new functions, or updating the code of existing ones
    - Translating every failure into a DeployResult
    """

    def __init__(
        self,
        resolver: CredentialResolver,
        settings: Optional[DeployerSettings] = None,
        backend_factory: Callable[[Credentials, DeployerSettings], DeployBackend] = select_backend,
        locks: Optional[FunctionLocks] = None,
    ):
        """
        Initialize the Lambda function deployer.

        Args:
            resolver: Resolver providing the cached credentials
            settings: Deployer settings (defaults to settings from the environment)
            backend_factory: Callable choosing the backend for a deploy
            locks: Per-function locks (defaults to the process-wide registry)
        """
        self.resolver = resolver
        self.settings = settings or DeployerSettings.from_env()
        self.backend_factory = backend_factory
        self.locks = locks or _function_locks

    def _resolve_role_arn(self, backend: DeployBackend) -> str:
        if self.settings.role_arn:
            return self.settings.role_arn

        account_id = backend.get_account_id()
        if not account_id:
            if not self.settings.allow_placeholder_account:
                raise CredentialError(
                    "Could not determine the AWS account ID for the execution role; "
                    "set LAMBDA_DEPLOYER_ROLE_ARN or check the credentials"
                )
            logger.warning(f"Using placeholder account ID {PLACEHOLDER_ACCOUNT_ID} for the execution role")
            account_id = PLACEHOLDER_ACCOUNT_ID

        return f"arn:aws:iam::{account_id}:role/{self.settings.role_name}"

    def _function_spec(self, backend: DeployBackend, file_path: str, function_name: str) -> FunctionSpec:
        return FunctionSpec(
            function_name=function_name,
            runtime=get_runtime(file_path),
            handler=get_handler(file_path),
            role_arn=self._resolve_role_arn(backend),
            timeout=self.settings.timeout,
            memory_size=self.settings.memory_size,
            description=f"Deployed from lambda-file-deployer - {datetime.now(timezone.utc).isoformat()}",
        )

    def deploy_function(
        self,
        file_path: str,
        function_name: str,
        region: Optional[str] = None,
    ) -> DeployResult:
        """
        Deploy a source file to a Lambda function.

        If the function doesn't exist, it will be created.
        If the function exists, its code will be updated.

        Args:
            file_path: Path of the source file
            function_name: Name of the Lambda function
            region: Region overriding the one stored with the credentials

        Returns:
            Outcome of the deploy; never raises for AWS or local failures
        """
        try:
            credentials = self.resolver.get_credentials()
            if region:
                credentials = replace(credentials, region=validate_region(region))

            backend = self.backend_factory(credentials, self.settings)
            logger.info(f"Deploying {file_path} to {function_name} in {credentials.region} using {backend.name}")

            with self.locks.hold(function_name):
                probe = backend.function_exists(function_name)

                if probe.state is FunctionState.PROBE_ERROR:
                    logger.error(f"Could not check Lambda function {function_name}: {probe.error}")
                    return DeployResult.failed(
                        f"Could not check whether {function_name} exists: {probe.error}"
                    )

                if probe.state is FunctionState.FOUND:
                    logger.info(f"Lambda function {function_name} exists, updating it")
                    result = backend.update_function_code(function_name, file_path)
                else:
                    logger.info(f"Lambda function {function_name} does not exist, creating it")
                    spec = self._function_spec(backend, file_path, function_name)
                    result = backend.create_function(spec, file_path)

        except (LambdaDeployerError, ClientError, BotoCoreError) as e:
            logger.error(f"Deploy of {function_name} failed: {e}")
            return DeployResult.failed(str(e))

        if not result.success:
            logger.error(f"Deploy of {function_name} failed: {result.error}")
        return result

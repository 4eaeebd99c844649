"""
AWS CLI deploy backend.
Runs the `aws` command line tool with the credentials passed through the
child process environment.
"""
import logging
import os
import subprocess
from dataclasses import dataclass
from textwrap import shorten
from typing import Dict, List, Optional, Sequence

from lambda_file_deployer.credentials.models import Credentials
from lambda_file_deployer.errors import ExternalToolError
from lambda_file_deployer.lambda_func.backend import (
    DeployBackend,
    DeployResult,
    FunctionSpec,
    ProbeResult,
)
from lambda_file_deployer.packaging.archive import remove_archive, write_archive

logger = logging.getLogger(__name__)

NOT_FOUND_MARKER = "ResourceNotFoundException"
WARNING_MARKER = "warning"

# never inherited by the child process; the resolved credentials take their place
_AMBIENT_AWS_VARIABLES = (
    "AWS_PROFILE",
    "AWS_DEFAULT_PROFILE",
    "AWS_SESSION_TOKEN",
    "AWS_SECURITY_TOKEN",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_DEFAULT_REGION",
    "AWS_REGION",
)


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: str
    stderr: str


def run_command(
    cmd: Sequence[str],
    *,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> RunResult:
    """
    Run a command and capture its output.

    A non-zero exit status is returned, not raised.

    Raises:
        ExternalToolError: If the executable is missing or the command times out
    """
    logger.info(f"Running command: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
        )
    except FileNotFoundError as e:
        raise ExternalToolError(f"Command not found: {cmd[0]} (is the AWS CLI installed?)") from e
    except subprocess.TimeoutExpired as e:
        raise ExternalToolError(f"Command did not finish within {timeout} seconds: {' '.join(cmd)}") from e
    except OSError as e:
        raise ExternalToolError(f"Could not run {cmd[0]}: {e}") from e

    if result.stdout:
        logger.debug(f"Command stdout: {shorten(result.stdout.strip(), width=2000)}")
    if result.stderr:
        logger.debug(f"Command stderr: {shorten(result.stderr.strip(), width=2000)}")
    return RunResult(returncode=result.returncode, stdout=result.stdout or "", stderr=result.stderr or "")


def is_cli_available(executable: str = "aws", timeout: Optional[float] = 30.0) -> bool:
    """Check whether the AWS CLI can be run."""
    try:
        result = run_command([executable, "--version"], timeout=timeout)
    except ExternalToolError as e:
        logger.debug(f"AWS CLI not available: {e}")
        return False
    return result.returncode == 0 and "aws-cli" in (result.stdout + result.stderr)


def to_deploy_result(result: RunResult) -> DeployResult:
    """
    Interpret an AWS CLI invocation as a deploy outcome.

    A non-zero exit status fails, and so does any stderr output that is not
    merely a warning.
    """
    stderr = result.stderr.strip()
    if result.returncode != 0:
        return DeployResult.failed(
            stderr or result.stdout.strip() or f"AWS CLI exited with status {result.returncode}"
        )
    if stderr and WARNING_MARKER not in stderr.lower():
        return DeployResult.failed(stderr)
    if stderr:
        logger.warning(f"AWS CLI reported: {stderr}")
    return DeployResult.ok(output=result.stdout)


class CliDeployBackend(DeployBackend):
    """
    Deploys Lambda functions by invoking the AWS CLI.

    Credentials are only ever passed as environment variables of the child
    process, never as command line arguments.
    """

    name = "aws-cli"

    def __init__(
        self,
        credentials: Credentials,
        executable: str = "aws",
        timeout: Optional[float] = None,
    ):
        """
        Initialize the AWS CLI backend.

        Args:
            credentials: Credentials used for every invocation
            executable: Name or path of the AWS CLI executable
            timeout: Timeout for each invocation in seconds (None waits indefinitely)
        """
        super().__init__(credentials)
        self.executable = executable
        self.timeout = timeout

    def _environment(self) -> Dict[str, str]:
        env = {k: v for k, v in os.environ.items() if k not in _AMBIENT_AWS_VARIABLES}
        env.update({
            "AWS_ACCESS_KEY_ID": self.credentials.access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.credentials.secret_access_key,
            "AWS_DEFAULT_REGION": self.credentials.region,
            "AWS_PAGER": "",
        })
        return env

    def _aws(self, *args: str) -> RunResult:
        cmd: List[str] = [self.executable, *args]
        return run_command(cmd, env=self._environment(), timeout=self.timeout)

    def function_exists(self, function_name: str) -> ProbeResult:
        try:
            result = self._aws(
                "lambda", "get-function",
                "--function-name", function_name,
                "--region", self.credentials.region,
            )
        except ExternalToolError as e:
            return ProbeResult.probe_error(str(e))

        if result.returncode == 0:
            return ProbeResult.found()
        if NOT_FOUND_MARKER in result.stderr:
            return ProbeResult.not_found()
        return ProbeResult.probe_error(
            result.stderr.strip() or f"aws lambda get-function exited with status {result.returncode}"
        )

    def get_account_id(self) -> Optional[str]:
        try:
            result = self._aws(
                "sts", "get-caller-identity",
                "--query", "Account",
                "--output", "text",
            )
        except ExternalToolError as e:
            logger.error(f"Error getting AWS account ID: {e}")
            return None

        account_id = result.stdout.strip()
        if result.returncode != 0 or not account_id.isdigit():
            logger.error(f"Error getting AWS account ID: {result.stderr.strip()}")
            return None
        return account_id

    def create_function(self, spec: FunctionSpec, file_path: str) -> DeployResult:
        zip_path = write_archive(file_path)
        try:
            args = [
                "lambda", "create-function",
                "--function-name", spec.function_name,
                "--runtime", spec.runtime,
                "--role", spec.role_arn,
                "--handler", spec.handler,
                "--timeout", str(spec.timeout),
                "--memory-size", str(spec.memory_size),
                "--zip-file", f"fileb://{zip_path}",
                "--region", self.credentials.region,
            ]
            if spec.description:
                args.extend(["--description", spec.description])
            return to_deploy_result(self._aws(*args))
        finally:
            remove_archive(zip_path)

    def update_function_code(self, function_name: str, file_path: str) -> DeployResult:
        zip_path = write_archive(file_path)
        try:
            return to_deploy_result(self._aws(
                "lambda", "update-function-code",
                "--function-name", function_name,
                "--zip-file", f"fileb://{zip_path}",
                "--region", self.credentials.region,
            ))
        finally:
            remove_archive(zip_path)

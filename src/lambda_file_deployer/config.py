"""
Runtime settings for the Lambda File Deployer.
Settings are read from environment variables and may be overridden by CLI flags.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_STORAGE_DIR = Path.home() / ".lambda-file-deployer"
DEFAULT_ROLE_NAME = "lambda-execution-role"
DEFAULT_TIMEOUT = 30
DEFAULT_MEMORY_SIZE = 128
DEFAULT_PROMPT_DELAY = 0.3

BACKEND_CHOICES = ("auto", "cli", "sdk")


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}")


@dataclass
class DeployerSettings:
    """
    Settings shared by the credential resolver and the deploy executor.

    Attributes:
        storage_dir: Directory holding the cached credentials file
        aws_credentials_file: AWS CLI shared credentials file
        aws_config_file: AWS CLI config file
        aws_executable: Name or path of the AWS CLI executable
        backend: Deploy backend to use ("auto", "cli" or "sdk")
        role_name: Name of the execution role referenced by new functions
        role_arn: Explicit execution role ARN, bypasses the account lookup
        allow_placeholder_account: Use a placeholder account ID when the
            identity service cannot be reached
        timeout: Timeout for newly created functions in seconds
        memory_size: Memory size for newly created functions in MB
        prompt_delay: Pause between consecutive credential prompts in seconds
        prompt_when_missing: Ask for credentials when none are configured
        command_timeout: Timeout for AWS CLI invocations in seconds (None waits)
    """
    storage_dir: Path = DEFAULT_STORAGE_DIR
    aws_credentials_file: Path = Path.home() / ".aws" / "credentials"
    aws_config_file: Path = Path.home() / ".aws" / "config"
    aws_executable: str = "aws"
    backend: str = "auto"
    role_name: str = DEFAULT_ROLE_NAME
    role_arn: Optional[str] = None
    allow_placeholder_account: bool = False
    timeout: int = DEFAULT_TIMEOUT
    memory_size: int = DEFAULT_MEMORY_SIZE
    prompt_delay: float = DEFAULT_PROMPT_DELAY
    prompt_when_missing: bool = True
    command_timeout: Optional[float] = None

    def __post_init__(self):
        if self.backend not in BACKEND_CHOICES:
            raise ValueError(
                f"Unknown backend {self.backend!r}, expected one of: {', '.join(BACKEND_CHOICES)}"
            )

    @property
    def credentials_path(self) -> Path:
        return Path(self.storage_dir) / "aws-credentials.json"

    @classmethod
    def from_env(cls) -> "DeployerSettings":
        """Build settings from environment variables, falling back to defaults."""
        home = Path.home()
        return cls(
            storage_dir=Path(os.getenv("LAMBDA_DEPLOYER_HOME", str(DEFAULT_STORAGE_DIR))).expanduser(),
            aws_credentials_file=Path(
                os.getenv("AWS_SHARED_CREDENTIALS_FILE", str(home / ".aws" / "credentials"))
            ).expanduser(),
            aws_config_file=Path(
                os.getenv("AWS_CONFIG_FILE", str(home / ".aws" / "config"))
            ).expanduser(),
            aws_executable=os.getenv("LAMBDA_DEPLOYER_AWS_CLI", "aws"),
            backend=os.getenv("LAMBDA_DEPLOYER_BACKEND", "auto").strip().lower(),
            role_name=os.getenv("LAMBDA_DEPLOYER_ROLE_NAME", DEFAULT_ROLE_NAME),
            role_arn=os.getenv("LAMBDA_DEPLOYER_ROLE_ARN") or None,
            allow_placeholder_account=_get_bool("LAMBDA_DEPLOYER_ALLOW_PLACEHOLDER_ACCOUNT"),
            timeout=_get_int("LAMBDA_DEPLOYER_TIMEOUT", DEFAULT_TIMEOUT),
            memory_size=_get_int("LAMBDA_DEPLOYER_MEMORY_SIZE", DEFAULT_MEMORY_SIZE),
            prompt_delay=_get_float("LAMBDA_DEPLOYER_PROMPT_DELAY", DEFAULT_PROMPT_DELAY),
            prompt_when_missing=_get_bool("LAMBDA_DEPLOYER_PROMPT_WHEN_MISSING", True),
        )

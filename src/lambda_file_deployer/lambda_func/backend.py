"""
Deploy backend interface.
A backend performs the AWS calls of a deploy; the CLI and SDK backends are
interchangeable and selected once per deploy.
"""
import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from lambda_file_deployer.credentials.models import Credentials


@dataclass(frozen=True)
class DeployResult:
    """Outcome of a deploy attempt. A successful result never carries an error."""
    success: bool
    error: Optional[str] = None
    output: Optional[str] = None

    def __post_init__(self):
        if self.success and self.error is not None:
            raise ValueError("A successful DeployResult cannot carry an error")

    @classmethod
    def ok(cls, output: Optional[str] = None) -> "DeployResult":
        return cls(success=True, output=output)

    @classmethod
    def failed(cls, error: str) -> "DeployResult":
        return cls(success=False, error=error or "Unknown error")


class FunctionState(enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    PROBE_ERROR = "probe_error"


@dataclass(frozen=True)
class ProbeResult:
    """Result of checking whether a Lambda function exists."""
    state: FunctionState
    error: Optional[str] = None

    @classmethod
    def found(cls) -> "ProbeResult":
        return cls(FunctionState.FOUND)

    @classmethod
    def not_found(cls) -> "ProbeResult":
        return cls(FunctionState.NOT_FOUND)

    @classmethod
    def probe_error(cls, error: str) -> "ProbeResult":
        return cls(FunctionState.PROBE_ERROR, error)


@dataclass(frozen=True)
class FunctionSpec:
    """Settings of a function to be created."""
    function_name: str
    runtime: str
    handler: str
    role_arn: str
    timeout: int = 30
    memory_size: int = 128
    description: Optional[str] = None


class DeployBackend(ABC):
    """
    Performs Lambda calls with one set of credentials.

    Implementations translate their own failures into DeployResult/ProbeResult
    values or typed package exceptions.
    """

    name = "backend"

    def __init__(self, credentials: Credentials):
        self.credentials = credentials

    @abstractmethod
    def function_exists(self, function_name: str) -> ProbeResult:
        """Check whether the function exists in the credentials' region."""

    @abstractmethod
    def get_account_id(self) -> Optional[str]:
        """Account ID of the credentials, or None if it cannot be determined."""

    @abstractmethod
    def create_function(self, spec: FunctionSpec, file_path: str) -> DeployResult:
        """Create a new function from a single source file."""

    @abstractmethod
    def update_function_code(self, function_name: str, file_path: str) -> DeployResult:
        """Replace the code of an existing function with a single source file."""

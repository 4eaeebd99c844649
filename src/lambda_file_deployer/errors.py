"""
Exception hierarchy for the Lambda File Deployer.
"""


class LambdaDeployerError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(LambdaDeployerError):
    """User input failed validation."""


class CredentialError(LambdaDeployerError):
    """Credentials are missing, invalid or could not be obtained."""


class FileSystemError(LambdaDeployerError):
    """A local file could not be read, written or deleted."""


class ExternalToolError(LambdaDeployerError):
    """The AWS CLI or AWS API reported a failure."""


class PackagingError(LambdaDeployerError):
    """The deployment archive could not be created."""

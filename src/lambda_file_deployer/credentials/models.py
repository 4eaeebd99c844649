"""
Credential data model and input validation.
"""
from dataclasses import dataclass, field
from typing import Optional

from lambda_file_deployer.errors import ValidationError

ACCESS_KEY_PREFIX = "AKIA"
MIN_SECRET_KEY_LENGTH = 20
DEFAULT_REGION = "us-east-1"

AWS_REGIONS = frozenset([
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
    "af-south-1",
    "ap-east-1",
    "ap-south-1",
    "ap-south-2",
    "ap-southeast-1",
    "ap-southeast-2",
    "ap-southeast-3",
    "ap-southeast-4",
    "ap-northeast-1",
    "ap-northeast-2",
    "ap-northeast-3",
    "ca-central-1",
    "ca-west-1",
    "eu-central-1",
    "eu-central-2",
    "eu-west-1",
    "eu-west-2",
    "eu-west-3",
    "eu-south-1",
    "eu-south-2",
    "eu-north-1",
    "il-central-1",
    "me-south-1",
    "me-central-1",
    "sa-east-1",
])


@dataclass(frozen=True)
class Credentials:
    """
    A long-lived AWS access key pair bound to a region.

    The timestamp records when the credentials were cached and does not take
    part in equality.
    """
    access_key_id: str
    secret_access_key: str
    region: str = DEFAULT_REGION
    timestamp: Optional[str] = field(default=None, compare=False)

    def __repr__(self) -> str:
        return (
            f"Credentials(access_key_id={mask_secret(self.access_key_id)!r}, "
            f"region={self.region!r}, timestamp={self.timestamp!r})"
        )


def validate_access_key_id(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError("Access Key ID is required")
    if not value.startswith(ACCESS_KEY_PREFIX):
        raise ValidationError(f"Access Key ID must start with {ACCESS_KEY_PREFIX}")
    return value


def validate_secret_access_key(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError("Secret Access Key is required")
    if len(value) < MIN_SECRET_KEY_LENGTH:
        raise ValidationError(
            f"Secret Access Key must be at least {MIN_SECRET_KEY_LENGTH} characters long"
        )
    return value


def validate_region(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError("Region is required")
    if value not in AWS_REGIONS:
        raise ValidationError(f"Unknown AWS region: {value}")
    return value


def mask_secret(value: str) -> str:
    """
    Mask a secret, keeping only its first and last four characters.

    Values too short to keep both ends hidden are masked completely.
    """
    if not value:
        return ""
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}…{value[-4:]}"

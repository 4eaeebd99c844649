"""
AWS CLI profile discovery.

Reads the AWS CLI shared credentials file and config file to list named
profiles and to extract the key pair and region of a single profile. The
parser is deliberately tolerant: anything it does not understand is skipped.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set

from lambda_file_deployer.credentials.models import DEFAULT_REGION, Credentials

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
CONFIG_PROFILE_PREFIX = "profile "


@dataclass(frozen=True)
class AwsConfigPaths:
    """Locations of the AWS CLI credentials and config files."""
    credentials_file: Path
    config_file: Path

    @classmethod
    def default(cls) -> "AwsConfigPaths":
        home = Path.home()
        return cls(
            credentials_file=Path(
                os.getenv("AWS_SHARED_CREDENTIALS_FILE", str(home / ".aws" / "credentials"))
            ).expanduser(),
            config_file=Path(
                os.getenv("AWS_CONFIG_FILE", str(home / ".aws" / "config"))
            ).expanduser(),
        )


def parse_sections(text: str) -> Dict[str, Dict[str, str]]:
    """
    Parse INI-style text into sections of key/value pairs.

    Args:
        text: Contents of an AWS CLI credentials or config file

    Returns:
        Mapping of section name to its key/value pairs, in file order
    """
    sections: Dict[str, Dict[str, str]] = {}
    current: Optional[Dict[str, str]] = None

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped[0] in "#;":
            continue

        if stripped.startswith("[") and stripped.endswith("]"):
            name = stripped[1:-1].strip()
            if not name:
                current = None
                continue
            current = sections.setdefault(name, {})
            continue

        if current is None or "=" not in stripped:
            continue

        key, _, value = stripped.partition("=")
        key = key.strip()
        if key:
            current[key] = value.strip()

    return sections


def _profile_name(section: str, is_config: bool) -> str:
    # config file sections other than "default" are written as "[profile name]"
    if is_config and section.startswith(CONFIG_PROFILE_PREFIX):
        return section[len(CONFIG_PROFILE_PREFIX):].strip()
    return section


def _config_section(profile: str) -> str:
    if profile == DEFAULT_PROFILE:
        return profile
    return f"{CONFIG_PROFILE_PREFIX}{profile}"


def section_names(text: str, is_config: bool = False) -> List[str]:
    """List the profile names defined in a credentials or config file."""
    return [_profile_name(name, is_config) for name in parse_sections(text)]


def _read_sections(path: Path) -> Dict[str, Dict[str, str]]:
    try:
        if not path.is_file():
            return {}
        return parse_sections(path.read_text(encoding="utf-8", errors="replace"))
    except OSError as e:
        logger.warning(f"Could not read AWS CLI file {path}: {e}")
        return {}


def profile_exists(paths: Optional[AwsConfigPaths] = None) -> bool:
    """Check whether either AWS CLI configuration file is present."""
    paths = paths or AwsConfigPaths.default()
    return paths.credentials_file.exists() or paths.config_file.exists()


def list_profiles(paths: Optional[AwsConfigPaths] = None) -> Set[str]:
    """
    List the profile names defined in the AWS CLI configuration.

    Args:
        paths: Locations of the AWS CLI files (defaults to the standard locations)

    Returns:
        Union of the profile names found in both files; empty if neither exists
    """
    paths = paths or AwsConfigPaths.default()
    profiles: Set[str] = set()
    profiles.update(
        _profile_name(name, is_config=False) for name in _read_sections(paths.credentials_file)
    )
    profiles.update(
        _profile_name(name, is_config=True) for name in _read_sections(paths.config_file)
    )
    profiles.discard("")
    return profiles


def resolve_profile(name: str, paths: Optional[AwsConfigPaths] = None) -> Optional[Credentials]:
    """
    Extract the credentials of a single AWS CLI profile.

    Args:
        name: Profile name
        paths: Locations of the AWS CLI files (defaults to the standard locations)

    Returns:
        The profile's credentials, or None if its key pair is incomplete
    """
    paths = paths or AwsConfigPaths.default()

    keys = _read_sections(paths.credentials_file).get(name, {})
    access_key_id = keys.get("aws_access_key_id", "")
    secret_access_key = keys.get("aws_secret_access_key", "")
    if not access_key_id or not secret_access_key:
        logger.debug(f"Profile {name} has no complete key pair")
        return None

    settings = _read_sections(paths.config_file).get(_config_section(name), {})
    region = settings.get("region") or DEFAULT_REGION

    return Credentials(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        region=region,
    )

"""
Credential resolver.
Decides which AWS credentials a deploy uses: the cached record, an AWS CLI
profile chosen by the user, or credentials entered by hand.
"""
import logging
import time
from enum import Enum
from typing import Callable, Optional

from lambda_file_deployer.credentials import profiles
from lambda_file_deployer.credentials.models import (
    ACCESS_KEY_PREFIX,
    DEFAULT_REGION,
    Credentials,
    mask_secret,
    validate_access_key_id,
    validate_region,
    validate_secret_access_key,
)
from lambda_file_deployer.credentials.profiles import AwsConfigPaths
from lambda_file_deployer.credentials.store import CredentialStore
from lambda_file_deployer.errors import CredentialError
from lambda_file_deployer.ui import UserInterface

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
ENTER_NEW_CREDENTIALS = "Enter new credentials"


class CredentialStatus(Enum):
    """Outcome of looking for usable credentials."""

    CACHED = "cached"
    LOADED = "loaded"
    ENTERED = "entered"
    CANCELLED = "cancelled"
    INVALID_PROFILE = "invalid_profile"
    NONE_FOUND = "none_found"

    @property
    def available(self) -> bool:
        return self in (CredentialStatus.CACHED, CredentialStatus.LOADED, CredentialStatus.ENTERED)


class CredentialResolver:
    """
    Resolves the AWS credentials used for a deploy.

    This class handles:
    - Preferring cached credentials over AWS CLI profiles
    - Letting the user pick an AWS CLI profile or enter new credentials
    - The bounded retry loop for manual credential entry
    - Resetting, updating and displaying the cached credentials
    """

    def __init__(
        self,
        store: CredentialStore,
        ui: UserInterface,
        config_paths: Optional[AwsConfigPaths] = None,
        prompt_delay: float = 0.3,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the credential resolver.

        Args:
            store: Store holding the cached credentials
            ui: User interaction capabilities
            config_paths: AWS CLI file locations (defaults to the standard locations)
            prompt_delay: Pause between consecutive prompts in seconds
            sleep: Function used to pause, replaceable in tests
        """
        self.store = store
        self.ui = ui
        self.config_paths = config_paths or AwsConfigPaths.default()
        self.prompt_delay = prompt_delay
        self._sleep = sleep

    def _pause(self) -> None:
        if self.prompt_delay > 0:
            self._sleep(self.prompt_delay)

    def check_credentials(self) -> bool:
        """
        Make sure credentials are available, asking the user if necessary.

        Returns:
            True if credentials are cached (possibly just now), False otherwise

        Raises:
            CredentialError: If manual entry was chosen and failed
        """
        return self.resolve_credentials().available

    def resolve_credentials(self) -> CredentialStatus:
        """
        Look for usable credentials, offering AWS CLI profiles when nothing is cached.

        Returns:
            Where the credentials came from, or why there are none

        Raises:
            CredentialError: If manual entry was chosen and failed
        """
        if self.store.load() is not None:
            logger.debug("Using cached credentials")
            return CredentialStatus.CACHED

        available = []
        if profiles.profile_exists(self.config_paths):
            available = sorted(profiles.list_profiles(self.config_paths))
        if not available:
            logger.info("No cached credentials and no AWS CLI profiles found")
            return CredentialStatus.NONE_FOUND

        choice = self.ui.choose(
            "Select AWS credentials to use",
            [ENTER_NEW_CREDENTIALS] + available,
        )
        if choice is None:
            logger.info("Credential selection cancelled")
            return CredentialStatus.CANCELLED

        if choice == ENTER_NEW_CREDENTIALS:
            self.prompt_for_credentials()
            return CredentialStatus.ENTERED

        credentials = profiles.resolve_profile(choice, self.config_paths)
        if credentials is None:
            self.ui.error(f"Profile {choice} does not contain an access key and secret key")
            return CredentialStatus.INVALID_PROFILE

        self.store.save(credentials)
        self.ui.success(f"AWS credentials loaded from profile {choice}")
        return CredentialStatus.LOADED

    def _prompt_once(self) -> Credentials:
        access_key_id = self.ui.prompt(
            "AWS Access Key ID",
            placeholder=f"{ACCESS_KEY_PREFIX}...",
            validate=validate_access_key_id,
        )
        if not access_key_id:
            raise CredentialError("Access Key ID is required")
        self._pause()

        secret_access_key = self.ui.prompt(
            "AWS Secret Access Key",
            placeholder="Secret key...",
            password=True,
            validate=validate_secret_access_key,
        )
        if not secret_access_key:
            raise CredentialError("Secret Access Key is required")
        self._pause()

        region = self.ui.prompt(
            "AWS Region",
            value=DEFAULT_REGION,
            placeholder=DEFAULT_REGION,
            validate=validate_region,
        )
        if not region:
            raise CredentialError("Region is required")

        return Credentials(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            region=region,
        )

    def prompt_for_credentials(self) -> Credentials:
        """
        Ask the user for new credentials and cache them.

        At most MAX_ATTEMPTS attempts are made; between attempts the user is
        asked whether to try again.

        Returns:
            The saved credentials

        Raises:
            CredentialError: If all attempts failed or the user gave up
            FileSystemError: If the credentials could not be saved
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                credentials = self._prompt_once()
            except CredentialError as e:
                logger.info(f"Credential entry attempt {attempt} failed: {e}")
                if attempt >= MAX_ATTEMPTS:
                    raise CredentialError(
                        f"Credential entry failed after {MAX_ATTEMPTS} attempts: {e}"
                    ) from e
                self.ui.warning(f"{e} ({attempt}/{MAX_ATTEMPTS})")
                if not self.ui.confirm("Do you want to try entering credentials again?"):
                    raise CredentialError("Credential entry cancelled by user") from e
                self._pause()
                continue

            saved = self.store.save(credentials)
            self.ui.success("AWS credentials saved successfully")
            return saved

    def reset_credentials(self) -> bool:
        """
        Remove the cached credentials.

        Returns:
            True if credentials were removed, False if there were none

        Raises:
            FileSystemError: If the credentials file cannot be removed
        """
        removed = self.store.clear()
        if removed:
            self.ui.success("AWS credentials reset successfully")
        else:
            self.ui.info("No saved AWS credentials to reset")
        return removed

    def update_credentials(self) -> Credentials:
        """Replace the cached credentials with newly entered ones."""
        self.reset_credentials()
        return self.prompt_for_credentials()

    def show_credentials(self) -> Optional[str]:
        """
        Display the cached credentials with both keys masked.

        Returns:
            The displayed text, or None if no credentials are cached
        """
        credentials = self.store.load()
        if credentials is None:
            self.ui.info("No saved AWS credentials found")
            return None

        lines = [
            "AWS credentials:",
            f"  Access Key ID: {mask_secret(credentials.access_key_id)}",
            f"  Secret Access Key: {mask_secret(credentials.secret_access_key)}",
            f"  Region: {credentials.region}",
        ]
        if credentials.timestamp:
            lines.append(f"  Saved at: {credentials.timestamp}")
        text = "\n".join(lines)
        self.ui.info(text)
        return text

    def get_credentials(self) -> Credentials:
        """
        Return the cached credentials.

        Raises:
            CredentialError: If no credentials are cached
        """
        credentials = self.store.load()
        if credentials is None:
            raise CredentialError("AWS credentials not found. Please enter credentials first.")
        return credentials

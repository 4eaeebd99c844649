"""
Local credential store.
Persists a single set of AWS credentials as a JSON document.
"""
import json
import logging
import os
import tempfile
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from lambda_file_deployer.credentials.models import Credentials
from lambda_file_deployer.errors import FileSystemError

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Stores the cached AWS credentials in one file.

    Only one record is kept; every save overwrites the previous one.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the credential store.

        Args:
            path: Location of the JSON credentials file
        """
        self.path = Path(path)

    def load(self) -> Optional[Credentials]:
        """
        Load the cached credentials.

        Returns:
            The cached credentials, or None if nothing usable is stored
        """
        try:
            if not self.path.exists():
                return None
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("credentials file does not contain an object")
            access_key_id = data["accessKeyId"]
            secret_access_key = data["secretAccessKey"]
            region = data["region"]
            if not all(isinstance(v, str) and v for v in (access_key_id, secret_access_key, region)):
                raise ValueError("credentials file has empty or non-string fields")
            return Credentials(
                access_key_id=access_key_id,
                secret_access_key=secret_access_key,
                region=region,
                timestamp=data.get("timestamp"),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable credentials file {self.path}: {e}")
            return None

    def save(self, credentials: Credentials) -> Credentials:
        """
        Save credentials, replacing any previously cached record.

        Args:
            credentials: Credentials to cache

        Returns:
            The saved credentials, stamped with the current time

        Raises:
            FileSystemError: If the file cannot be written
        """
        stamped = replace(credentials, timestamp=datetime.now(timezone.utc).isoformat())
        document = {
            "accessKeyId": stamped.access_key_id,
            "secretAccessKey": stamped.secret_access_key,
            "region": stamped.region,
            "timestamp": stamped.timestamp,
        }
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # mkstemp creates the file readable by the owner only
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".aws-credentials.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path:
                self._discard(tmp_path)
            logger.error(f"Error saving credentials to {self.path}: {e}")
            raise FileSystemError(f"Could not save credentials: {e}") from e

        logger.info(f"Saved credentials to {self.path}")
        return stamped

    @staticmethod
    def _discard(tmp_path: str) -> None:
        try:
            os.remove(tmp_path)
        except OSError as e:
            logger.warning(f"Could not remove temporary file {tmp_path}: {e}")

    def clear(self) -> bool:
        """
        Remove the cached credentials.

        Returns:
            True if a record was removed, False if nothing was stored

        Raises:
            FileSystemError: If the file exists but cannot be removed
        """
        if not self.path.exists():
            return False
        try:
            self.path.unlink()
        except OSError as e:
            logger.error(f"Error removing credentials file {self.path}: {e}")
            raise FileSystemError(f"Could not remove credentials: {e}") from e

        logger.info(f"Removed credentials file {self.path}")
        return True

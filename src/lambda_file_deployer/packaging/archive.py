"""
Deployment archive creation.
Packages a single source file into a zip archive for AWS Lambda.
"""
import io
import logging
import os
import tempfile
import zipfile

from lambda_file_deployer.errors import PackagingError

logger = logging.getLogger(__name__)


def build_archive(file_path: str) -> bytes:
    """
    Create an in-memory zip archive holding one source file.

    Args:
        file_path: Path of the source file

    Returns:
        Bytes of the zip archive; its only entry is named by the file's base name

    Raises:
        PackagingError: If the file cannot be read or the archive cannot be built
    """
    file_name = os.path.basename(file_path)
    try:
        with open(file_path, "rb") as source:
            content = source.read()
    except OSError as e:
        raise PackagingError(f"Could not read {file_path}: {e}") from e

    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(file_name, content)
    except (zipfile.BadZipFile, ValueError, OSError) as e:
        raise PackagingError(f"Could not create zip archive for {file_path}: {e}") from e

    logger.debug(f"Packaged {file_path} ({len(content)} bytes)")
    return buffer.getvalue()


def write_archive(file_path: str) -> str:
    """
    Package a source file into a temporary zip file next to it.

    The archive gets a fresh unique name, so existing files are never overwritten.

    Args:
        file_path: Path of the source file

    Returns:
        Path of the written archive

    Raises:
        PackagingError: If the archive cannot be built or written
    """
    data = build_archive(file_path)
    directory = os.path.dirname(os.path.abspath(file_path))
    try:
        fd, zip_path = tempfile.mkstemp(
            dir=directory, prefix=f"{os.path.basename(file_path)}.", suffix=".zip"
        )
    except OSError as e:
        raise PackagingError(f"Could not create zip archive in {directory}: {e}") from e

    try:
        with os.fdopen(fd, "wb") as target:
            target.write(data)
    except OSError as e:
        remove_archive(zip_path)
        raise PackagingError(f"Could not write zip archive {zip_path}: {e}") from e

    logger.debug(f"Wrote temporary archive {zip_path}")
    return zip_path


def remove_archive(zip_path: str) -> bool:
    """
    Delete a temporary archive.

    Failures are logged and never raised.

    Returns:
        True if the archive is gone afterwards, False if it could not be removed
    """
    try:
        if os.path.exists(zip_path):
            os.remove(zip_path)
            logger.info(f"Removed temporary archive {zip_path}")
        return True
    except OSError as e:
        logger.warning(f"Could not remove temporary archive {zip_path}: {e}")
        return False

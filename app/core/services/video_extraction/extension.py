"""Unpacks a zipped browser extension before launch."""

import zipfile
from pathlib import Path

import structlog

from app.core.services.video_extraction.exceptions import ExtensionUnpackError

logger = structlog.get_logger(__name__)


def unpack_extension(archive: Path, target_dir: Path) -> Path:
    """Extract an extension archive into a fixed directory.

    Existing files in ``target_dir`` are overwritten so a newer archive
    replaces a previously unpacked copy.

    Args:
        archive: Path to the zipped extension
        target_dir: Directory the extension is unpacked into

    Returns:
        Absolute path of the unpacked extension

    Raises:
        ExtensionUnpackError: If the archive is missing or not a valid zip
    """
    archive = Path(archive).resolve()
    target_dir = Path(target_dir).resolve()

    if not archive.is_file():
        raise ExtensionUnpackError(archive, 'archive not found')

    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(target_dir)
    except (zipfile.BadZipFile, OSError) as e:
        raise ExtensionUnpackError(archive, str(e)) from e

    logger.info('Extension extracted successfully', archive=str(archive), target=str(target_dir))
    return target_dir

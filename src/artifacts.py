"""
Packaging of code artifacts into a Lambda deployment zip.
"""

import logging
import os
import shutil
import zipfile
from typing import Optional

from errors import ValidationError

logger = logging.getLogger(__name__)

STAGING_DIR_NAME = "lambda-package"
ZIP_FILE_NAME = "lambda-function.zip"


def package_code_artifacts(artifacts_dir: str, work_dir: Optional[str] = None) -> str:
    """
    Copy a directory of code artifacts to a staging area and zip it.

    Args:
        artifacts_dir: Directory whose contents become the zip root (relative
            paths resolve against the current directory)
        work_dir: Where the staging dir and zip are written (defaults to cwd)

    Returns:
        Path to the zip archive

    Raises:
        ValidationError: Directory missing, unreadable or empty
        RuntimeError: The written archive fails verification
    """
    work_dir = work_dir or os.getcwd()
    staging_dir = os.path.join(work_dir, STAGING_DIR_NAME)
    zip_path = os.path.join(work_dir, ZIP_FILE_NAME)

    source_dir = os.path.abspath(artifacts_dir)
    if not os.path.isdir(source_dir):
        raise ValidationError(
            f"Code artifacts directory '{source_dir}' does not exist or is not accessible"
        )

    entries = sorted(os.listdir(source_dir))
    if not entries:
        raise ValidationError(
            f"Code artifacts directory '{source_dir}' is empty, no files to package"
        )

    shutil.rmtree(staging_dir, ignore_errors=True)
    os.makedirs(staging_dir)

    logger.info(f"Copying artifacts from {source_dir} to {staging_dir}")
    logger.info(f"Found {len(entries)} files/directories to copy")
    for name in entries:
        src = os.path.join(source_dir, name)
        dst = os.path.join(staging_dir, name)
        logger.debug(f"Copying {src} to {dst}")
        if os.path.isdir(src):
            shutil.copytree(src, dst)
        else:
            shutil.copy2(src, dst)

    logger.info("Creating ZIP file")
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for root, dirs, files in os.walk(staging_dir):
            dirs.sort()
            for fname in sorted(files):
                file_path = os.path.join(root, fname)
                arcname = os.path.relpath(file_path, staging_dir)
                zf.write(file_path, arcname)

    _verify_zip(zip_path)
    return zip_path


def _verify_zip(zip_path: str) -> None:
    """Re-open the archive and log its entries."""
    logger.info(f"Generated ZIP file size: {os.path.getsize(zip_path)} bytes")
    try:
        with zipfile.ZipFile(zip_path) as zf:
            bad = zf.testzip()
            if bad is not None:
                raise RuntimeError(f"corrupt entry {bad}")
            infos = zf.infolist()
    except (zipfile.BadZipFile, RuntimeError) as e:
        raise RuntimeError(f"ZIP validation failed: {e}") from e

    logger.info(f"ZIP verification passed - contains {len(infos)} entries:")
    for i, info in enumerate(infos, start=1):
        logger.info(f"  {i}. {info.filename} ({info.file_size} bytes)")

"""
File utilities for watched files: backup naming, read/overwrite, startup bootstrap
"""

import logging
import os
from typing import List, Tuple

import aiofiles

from ficta.service.exceptions import FileRewriteError

logger = logging.getLogger(__name__)

FILE_MODE = 0o644

DEFAULT_SEED_TEXT = """Continue the story that starts below.

Once upon a time there were three weasels named Willy, Worgus and Wishbone. One bright spring morning, Willy said to Worgus, "Hey, dude, what's for breakfast?"

"""


def replace_extension(filename: str, new_ext: str) -> str:
    """
    Swap the extension of filename for new_ext

    A leading dot on new_ext is ignored. A filename without an extension gets
    new_ext appended. An empty new_ext strips the extension.
    """
    new_ext = new_ext.lstrip(".")
    root, ext = os.path.splitext(filename)
    if not ext:
        root = filename
    if not new_ext:
        return root
    return f"{root}.{new_ext}"


async def read_text(path: str) -> str:
    # newline="" keeps CRLF and lone CR line endings as the author wrote them
    try:
        async with aiofiles.open(path, "r", encoding="utf-8", newline="") as f:
            return await f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FileRewriteError(path, "read", e) from e


async def copy_file(src: str, dest: str) -> None:
    try:
        async with aiofiles.open(src, "rb") as f:
            data = await f.read()
        async with aiofiles.open(dest, "wb") as f:
            await f.write(data)
    except OSError as e:
        raise FileRewriteError(src, f"back up to {dest}", e) from e


async def backup_file(path: str, backup_extension: str) -> str:
    """Copy path to its backup name. Returns the backup path, or "" when no backup was made."""
    if not backup_extension:
        return ""
    backup_path = replace_extension(path, backup_extension)
    if backup_path == path:
        logger.warning(f"⚠️ Backup of {path} would overwrite itself, skipping backup")
        return ""
    await copy_file(path, backup_path)
    return backup_path


async def overwrite_file(path: str, content: str) -> None:
    try:
        async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
            await f.write(content)
    except OSError as e:
        raise FileRewriteError(path, "write", e) from e


def prepare_watch_files(filenames: List[str], seed_content: str) -> Tuple[List[str], List[Exception]]:
    """
    Resolve the files to watch

    Missing files are created with seed_content. Every file is made read/write
    for its owner. Returns the absolute paths that are usable and the errors
    for those that are not.
    """
    good: List[str] = []
    errors: List[Exception] = []

    for filename in filenames:
        path = os.path.abspath(filename)
        try:
            if not os.path.exists(path):
                with open(path, "x", encoding="utf-8") as f:
                    f.write(seed_content)
                logger.info(f"📝 Created {path} with default content")
            else:
                # Confirm we can open it
                with open(path, "r", encoding="utf-8"):
                    pass
            os.chmod(path, FILE_MODE)
        except OSError as e:
            errors.append(e)
            continue
        if path not in good:
            good.append(path)

    return good, errors

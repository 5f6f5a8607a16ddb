import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List

import aiofiles.os

from faxagent.core.exceptions import FileProbeError
from .domain_objects import FileEntry, FileLocation


def file_extension(path: Path) -> str:
    """Lower-case extension including the dot, "" when the name has none."""
    return path.suffix.lower()


def _creation_timestamp(stat_result: os.stat_result) -> float:
    # st_birthtime findes på Windows (3.12+) og macOS; Linux falder tilbage til ctime
    birthtime = getattr(stat_result, "st_birthtime", None)
    if birthtime is not None:
        return birthtime
    return stat_result.st_ctime


async def probe_file(file_path: Path, location: FileLocation) -> FileEntry:
    """
    Read extension, last-write time and creation time of a file.

    Raises:
        FileProbeError: the file vanished or could not be stat'ed after it was listed.
    """
    try:
        stat_result = await aiofiles.os.stat(file_path)
    except FileNotFoundError as e:
        raise FileProbeError(str(file_path), "file no longer exists") from e
    except OSError as e:
        raise FileProbeError(str(file_path), str(e)) from e

    return FileEntry(
        path=file_path,
        location=location,
        extension=file_extension(file_path),
        last_write_time=datetime.fromtimestamp(stat_result.st_mtime),
        creation_time=datetime.fromtimestamp(_creation_timestamp(stat_result)),
    )


async def list_directory_files(directory: Path) -> List[Path]:
    """
    Fresh, non-recursive listing of the regular files in a directory.

    Raises OSError when the directory itself cannot be read; entries that
    disappear during the listing are simply left out.
    """
    names = await aiofiles.os.listdir(directory)
    files: List[Path] = []
    for name in sorted(names):
        path = directory / name
        if await aiofiles.os.path.isfile(path):
            files.append(path)

    logging.debug(f"Listed {len(files)} files in {directory}")
    return files

import shutil
from pathlib import Path


def change_extension(file_path: Path, extension: str) -> Path:
    """Swap the last extension, e.g. ``fax1.error`` -> ``fax1.eml``."""
    return file_path.with_suffix(extension)


def generate_conflict_free_path(dest_path: Path) -> Path:
    if not dest_path.exists():
        return dest_path

    # Keep the last extension intact so scans keep recognising the file
    stem = dest_path.stem
    suffix = dest_path.suffix
    parent = dest_path.parent

    for counter in range(1, 10000):
        new_path = parent / f"{stem}_{counter}{suffix}"
        if not new_path.exists():
            return new_path

    raise RuntimeError(
        f"Could not resolve name conflict after 9999 attempts: {dest_path}"
    )


def build_cache_path(file_path: Path, cache_directory: Path) -> Path:
    return generate_conflict_free_path(cache_directory / file_path.name)


def move_to_directory(file_path: Path, directory: Path) -> Path:
    """
    Move a file into ``directory`` under its own name (numbered on conflict).

    Blocking; run it through ``asyncio.to_thread``. Works across filesystems.
    """
    destination = build_cache_path(file_path, directory)
    shutil.move(str(file_path), str(destination))
    return destination

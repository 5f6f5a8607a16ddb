"""
Host-specific configuration management utility.

Picks the settings file for the machine the agent runs on. Every fax server
gets its own ``{hostname}-settings.env`` so drop/cache paths can differ per host
while ``settings.env`` stays the shared template.
"""

import logging
import shutil
import socket
from pathlib import Path
from typing import List

BASE_SETTINGS_FILE = "settings.env"


def get_hostname() -> str:
    """Get the current hostname (without domain)."""
    return socket.gethostname().split(".")[0]


def get_hostname_settings_file(base_file: str = BASE_SETTINGS_FILE) -> str:
    """
    Return the settings file to load for this host.

    If ``{hostname}-settings.env`` is missing it is created from the base file
    with a short header. Without a base file the base name is returned as is
    (pydantic-settings ignores env files that do not exist).
    """
    try:
        hostname = get_hostname()
        base_settings = Path(base_file)
        host_settings = base_settings.with_name(f"{hostname}-{base_settings.name}")

        if host_settings.exists():
            logging.debug(f"Using existing host-specific configuration: {host_settings}")
            return str(host_settings)

        if not base_settings.exists():
            logging.warning(f"{base_settings} not found, falling back to environment only")
            return str(base_settings)

        shutil.copy2(base_settings, host_settings)
        content = host_settings.read_text(encoding="utf-8")
        host_header = (
            f"# Host-specific fax agent configuration for: {hostname}\n"
            f"# Auto-generated from {base_settings.name} - edit drop/cache paths here\n"
            "# ==========================================================\n\n"
        )
        host_settings.write_text(host_header + content, encoding="utf-8")
        logging.info(f"Created host-specific configuration: {host_settings}")
        return str(host_settings)

    except OSError as e:
        logging.error(f"Error handling host-specific settings: {e}")
        logging.info(f"Falling back to default {base_file}")
        return base_file


def list_all_settings_files(directory: str = ".") -> List[str]:
    """List the base settings file and every host-specific variant."""
    root = Path(directory)
    settings_files = []

    if (root / BASE_SETTINGS_FILE).exists():
        settings_files.append(str(root / BASE_SETTINGS_FILE))

    for file_path in sorted(root.glob(f"*-{BASE_SETTINGS_FILE}")):
        settings_files.append(str(file_path))

    return settings_files

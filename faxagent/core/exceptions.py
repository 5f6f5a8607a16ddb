# faxagent/core/exceptions.py

from typing import Iterable


class ConfigurationError(Exception):
    """Raised when the service settings are missing or cannot be parsed."""
    def __init__(self, problems: Iterable[str]):
        self.problems = list(problems)
        super().__init__(
            "Invalid fax agent configuration: " + "; ".join(self.problems)
        )


class FileProbeError(Exception):
    """Raised when a listed file can no longer be inspected (moved, deleted, locked)."""
    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Could not inspect {file_path}: {reason}")

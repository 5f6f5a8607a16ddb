import logging
from typing import Dict, Optional


class RetryLedger:
    """
    Volatile attempt counter per ``.error`` filename.

    Only the error-retry scan mutates the ledger and that scan never overlaps
    with itself, so all access happens from one task on the event loop. The
    ledger is not persisted; counts start over when the service restarts.
    """

    def __init__(self) -> None:
        self._attempts: Dict[str, int] = {}

    def record_attempt(self, filename: str) -> int:
        """Insert the filename with count 1, or increment it. Returns the new count."""
        attempt = self._attempts.get(filename, 0) + 1
        self._attempts[filename] = attempt
        logging.debug(f"Retry ledger: {filename} -> attempt {attempt}")
        return attempt

    def evict(self, filename: str) -> None:
        if self._attempts.pop(filename, None) is not None:
            logging.debug(f"Retry ledger: {filename} evicted")

    def current_count(self, filename: str) -> Optional[int]:
        return self._attempts.get(filename)

    def clear(self) -> None:
        if self._attempts:
            logging.info(f"Retry ledger cleared ({len(self._attempts)} entries discarded)")
        self._attempts.clear()

    def snapshot(self) -> Dict[str, int]:
        return dict(self._attempts)

    def __contains__(self, filename: object) -> bool:
        return filename in self._attempts

    def __len__(self) -> int:
        return len(self._attempts)

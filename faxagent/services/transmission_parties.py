"""
Best-effort sender/receiver lookup for audit messages.

Fax drop files are plain text mail envelopes. The sender comes from the
``x-sender`` header; receiver fragments come from every line that starts
with the configured receiver prefix. The default prefix is empty, which matches
every line carrying a colon. That keeps the audit text identical to what
operators already grep for, at the cost of noisy receiver output.
"""
import logging
from pathlib import Path
from typing import Iterable

import aiofiles

from faxagent.core.audit import AuditCategory, AuditLogger, AuditSeverity
from faxagent.core.exceptions import FileProbeError

SENDER_HEADER_PREFIX = "x-sender"
UNIDENTIFIED_PARTIES = "Could not open file to identify Sender/Receiver\n"
ARROW = "⇒"


def _value_after_colon(line: str) -> str:
    # IndexError når linjen ikke har et kolon
    return line.split(":", 1)[1].strip()


def format_transmission_parties(lines: Iterable[str], receiver_prefix: str = "") -> str:
    fragments = []
    for line in lines:
        if line.startswith(SENDER_HEADER_PREFIX):
            try:
                sender = _value_after_colon(line)
            except IndexError:
                pass
            else:
                fragments.append(f"\n[Owner Transmission]\nSender: {sender} {ARROW} ")

        if line.startswith(receiver_prefix):
            try:
                receiver = _value_after_colon(line)
            except IndexError:
                continue
            fragments.append(f"Receiver: {receiver}\n")

    return "".join(fragments)


class TransmissionPartiesExtractor:
    def __init__(self, audit_logger: AuditLogger, receiver_prefix: str = ""):
        self._audit_logger = audit_logger
        self._receiver_prefix = receiver_prefix

    @property
    def receiver_prefix(self) -> str:
        return self._receiver_prefix

    async def describe(self, file_path: Path) -> str:
        """
        Sender/receiver text for the file, or a placeholder if it cannot be read.

        Raises FileProbeError when the file no longer exists.
        """
        try:
            lines = []
            async with aiofiles.open(file_path, "r", encoding="utf-8", errors="replace") as f:
                async for line in f:
                    lines.append(line.rstrip("\r\n"))
        except FileNotFoundError as e:
            # Filen er flyttet eller slettet siden listningen; scannet springer den over
            raise FileProbeError(str(file_path), "file no longer exists") from e
        except OSError as e:
            logging.warning(f"Could not read {file_path} for sender/receiver info: {e}")
            self._audit_logger.record(
                f"Error opening file, could not get user fax info.\n{e}",
                AuditSeverity.ERROR,
                AuditCategory.ERROR,
            )
            return UNIDENTIFIED_PARTIES

        return format_transmission_parties(lines, self._receiver_prefix)

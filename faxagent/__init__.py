"""Fax Drop Agent - vedligeholder RightFax drop- og error cache mapperne."""

__version__ = "0.1.0"

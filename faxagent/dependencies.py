from typing import Any, Dict

from .config import Settings, load_settings
from .core.audit import AuditLogger
from .core.retry_ledger import RetryLedger
from .services.domain_objects import LifecycleConfiguration
from .services.fax_drop_service import FaxDropService
from .services.lifecycle_engine import LifecycleEngine
from .services.transmission_parties import TransmissionPartiesExtractor

# Global singleton instances
_singletons: Dict[str, Any] = {}


def get_settings() -> Settings:
    """Hent Settings singleton. Fejler med ConfigurationError ved ugyldig opsætning."""
    if "settings" not in _singletons:
        _singletons["settings"] = load_settings()
    return _singletons["settings"]


def configure_settings(settings: Settings) -> None:
    """Use an already validated Settings instance instead of loading one."""
    reset_singletons()
    _singletons["settings"] = settings


def get_audit_logger() -> AuditLogger:
    if "audit_logger" not in _singletons:
        _singletons["audit_logger"] = AuditLogger(
            history_size=get_settings().audit_history_size
        )
    return _singletons["audit_logger"]


def get_retry_ledger() -> RetryLedger:
    if "retry_ledger" not in _singletons:
        _singletons["retry_ledger"] = RetryLedger()
    return _singletons["retry_ledger"]


def get_parties_extractor() -> TransmissionPartiesExtractor:
    if "parties_extractor" not in _singletons:
        _singletons["parties_extractor"] = TransmissionPartiesExtractor(
            audit_logger=get_audit_logger(),
            receiver_prefix=get_settings().receiver_header_prefix,
        )
    return _singletons["parties_extractor"]


def get_lifecycle_engine() -> LifecycleEngine:
    if "lifecycle_engine" not in _singletons:
        _singletons["lifecycle_engine"] = LifecycleEngine(
            config=LifecycleConfiguration.from_settings(get_settings()),
            retry_ledger=get_retry_ledger(),
            audit_logger=get_audit_logger(),
            parties_extractor=get_parties_extractor(),
        )
    return _singletons["lifecycle_engine"]


def get_fax_drop_service() -> FaxDropService:
    if "fax_drop_service" not in _singletons:
        _singletons["fax_drop_service"] = FaxDropService(
            settings=get_settings(),
            engine=get_lifecycle_engine(),
            retry_ledger=get_retry_ledger(),
            audit_logger=get_audit_logger(),
        )
    return _singletons["fax_drop_service"]


def reset_singletons() -> None:
    """Reset all singletons (til testing)."""
    _singletons.clear()

from pathlib import Path
from typing import Any, Dict

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.exceptions import ConfigurationError
from .utils.host_config import get_hostname_settings_file

# Navne fra den oprindelige RightFax opsætning, i den rækkefølge de logges
LIFECYCLE_SETTING_KEYS = (
    "rightFaxDropDirectory",
    "rightFaxCacheDirectory",
    "rightFaxDropPruneInterval",
    "rightFaxDropFileAgeHours",
    "rightFaxDropErrorInterval",
    "rightFaxDropMaxErrorChecks",
    "rightFaxCacheInterval",
    "errorCacheDaysToKeep",
)


class Settings(BaseSettings):
    # Overvågede mapper
    drop_directory: str = Field(alias="rightFaxDropDirectory")
    cache_directory: str = Field(alias="rightFaxCacheDirectory")

    # Pruning af drop mappen
    drop_prune_interval_hours: float = Field(alias="rightFaxDropPruneInterval", gt=0, allow_inf_nan=False)
    drop_file_age_hours: float = Field(alias="rightFaxDropFileAgeHours", ge=0, allow_inf_nan=False)

    # Error check, rename og flyt til cache
    drop_error_interval_minutes: float = Field(alias="rightFaxDropErrorInterval", gt=0, allow_inf_nan=False)
    drop_max_error_checks: int = Field(alias="rightFaxDropMaxErrorChecks", ge=0)

    # Aldersgrænse for error filer i cache
    cache_interval_hours: float = Field(alias="rightFaxCacheInterval", gt=0, allow_inf_nan=False)
    error_cache_days_to_keep: int = Field(alias="errorCacheDaysToKeep", ge=0)

    # Receiver linjer i fax filen. Tom streng matcher alle linjer (som den gamle service)
    receiver_header_prefix: str = Field(default="", alias="receiverHeaderPrefix")

    # Logging konfiguration
    log_level: str = "INFO"
    log_file_path: str = "logs/fax_agent.log"
    audit_log_file_path: str = "logs/fax_audit.log"
    log_retention_days: int = 30
    audit_history_size: int = Field(default=500, ge=1)

    # Status API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    model_config = SettingsConfigDict(
        env_file=get_hostname_settings_file(),
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def log_directory(self) -> Path:
        """Returnerer log directory som Path objekt"""
        return Path(self.log_file_path).parent

    def lifecycle_settings(self) -> Dict[str, Any]:
        """The eight lifecycle settings keyed by their configuration names."""
        values = self.model_dump(by_alias=True)
        return {key: values[key] for key in LIFECYCLE_SETTING_KEYS}

    @property
    def config_file_info(self) -> dict:
        """Return information about which configuration file is being used."""
        from .utils.host_config import get_hostname, list_all_settings_files

        return {
            "hostname": get_hostname(),
            "active_config_file": self.model_config.get("env_file"),
            "all_available_configs": list_all_settings_files(),
        }


def load_settings(**overrides: Any) -> Settings:
    """
    Build and validate the settings once at startup.

    Any missing or malformed value is reported together in a single
    ConfigurationError so the service never reaches its running state with a
    half-parsed configuration.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ConfigurationError(problems) from e

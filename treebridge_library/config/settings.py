"""Settings shared by the treebridge daemon and CLI.

Values come from keyword arguments (the YAML file, via the loader) and
TREEBRIDGE_* environment variables; the environment wins.
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class BridgeSettings(BaseSettings):
    """Configuration for the treebridge daemon and CLI.

    Attributes:
        host: Listen address (default: 127.0.0.1)
        port: Listen port (default: 8430)
        log_level: Logging level (default: info)
        workers: Number of workers (default: 1)
        title: Title reported for the document-tree root
        private_storage_dir: Search boundary; unset means the working directory
        storage_volume: Volume name used in scoped document ids (default: primary)
        storage_volume_path: Directory backing the volume (default: ~)
        content_authority: Authority of scoped addresses
        scoped_root: Scoped root address handed to the bridge, if already granted

    Example:
        >>> settings = BridgeSettings()
        >>> assert settings.port == 8430
    """

    model_config = SettingsConfigDict(
        env_prefix="TREEBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8430
    log_level: str = "info"
    workers: int = 1

    title: str = "treebridge"
    private_storage_dir: str | None = None

    storage_volume: str = "primary"
    storage_volume_path: str = "~"
    content_authority: str = "treebridge.documents"
    scoped_root: str | None = None

    @field_validator("private_storage_dir", "storage_volume_path")
    @classmethod
    def expand_and_resolve_path(cls, v: str | None) -> str | None:
        """Directory settings are stored as absolute, user-expanded paths."""
        if v is None:
            return None
        return str(Path(v).expanduser().resolve())

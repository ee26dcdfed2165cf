"""
extloader Configuration.

Centralized configuration management using Pydantic Settings.
Loads configuration from ``EXTLOADER_*`` environment variables.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Loader settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="extloader_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discovery
    services_directory: str = "META-INF/services"  # Relative to each search path entry
    extra_roots: list[str] | str = []  # Additional service roots (comma-separated in env)
    scan_sys_path: bool = True  # Look for services_directory under every sys.path entry
    enable_entry_points: bool = True  # Also read package entry points
    entry_point_group_prefix: str = "extloader.services"
    resource_encoding: str = "utf-8"

    # Logging
    log_level: str = "INFO"
    log_format: str = "standard"  # standard or json

    @property
    def extra_root_paths(self) -> list[Path]:
        """Configured extra roots as expanded paths."""
        if isinstance(self.extra_roots, str):
            roots = [r.strip() for r in self.extra_roots.split(",") if r.strip()]
        else:
            roots = list(self.extra_roots)
        return [Path(root).expanduser() for root in roots]


# Global settings instance
settings = Settings()

"""
Centralized settings and path configuration for the line pricing tool.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

TAX_TABLE_ENV = 'LINE_PRICING_TAX_TABLE'
LOG_LEVEL_ENV = 'LINE_PRICING_LOG_LEVEL'


def get_package_root() -> Path:
    """Get the line_pricing package directory (where data/ lives)."""
    return Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return current.parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Tax definitions (code, name, kind, value, priority, affect_tax, active)
    tax_table: Path

    log_level: str = 'INFO'

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        tax_table = os.environ.get(TAX_TABLE_ENV)
        return cls(
            project_root=root,
            tax_table=Path(tax_table) if tax_table else get_package_root() / 'data' / 'tax_table.csv',
            log_level=os.environ.get(LOG_LEVEL_ENV, 'INFO').upper(),
        )

    def configure_logging(self):
        """Configure root logging for scripts and servers."""
        logging.basicConfig(
            level=getattr(logging, self.log_level, logging.INFO),
            format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings

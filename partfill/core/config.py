"""
Unified configuration for the partfill enrichment tool.

Consolidates all configuration options into a single, well-documented
configuration class with sensible defaults.
"""

import os
from dataclasses import dataclass
from typing import Optional, Callable

from dotenv import load_dotenv

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUTHY = ("1", "true", "yes", "on")


@dataclass
class EnrichmentConfig:
    """
    Unified configuration for enrichment jobs.

    One instance can be shared by any number of jobs; nothing in it is
    mutated while a job runs.
    """

    # === Processing Configuration ===
    max_workers: int = 1
    """Maximum number of rows looked up concurrently (1 = strictly sequential)"""

    request_timeout: float = 30.0
    """Timeout for a single catalog lookup in seconds"""

    progress_callback: Optional[Callable[[int, int], None]] = None
    """Optional callback for progress updates (completed, total)"""

    enable_progress_bar: bool = True
    """Enable progress bar display"""

    # === Presentation ===
    highlight_color: str = "FFB6C1"
    """Fill color (RGB hex) for attributes the catalog could not supply"""

    header_fill_color: str = "D3D3D3"
    """Fill color (RGB hex) for the header row"""

    max_column_width: int = 60
    """Upper bound for auto-adjusted column widths"""

    # === Logging Configuration ===
    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"""

    log_dir: Optional[str] = None
    """Directory for log files (None = no file logging)"""

    # === Validation ===
    def __post_init__(self):
        """Validate configuration values after initialization."""
        if self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")

        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")

        if self.max_column_width <= 0:
            raise ValueError(f"max_column_width must be positive, got {self.max_column_width}")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level}")

        for name in ("highlight_color", "header_fill_color"):
            value = getattr(self, name)
            if len(value) != 6 or any(c not in "0123456789abcdefABCDEF" for c in value):
                raise ValueError(f"{name} must be a 6-digit RGB hex string, got {value!r}")

    @classmethod
    def for_development(cls) -> 'EnrichmentConfig':
        """Create configuration optimized for development."""
        return cls(
            max_workers=1,          # Sequential, easy to follow in logs
            request_timeout=10.0,
            enable_progress_bar=True,
            log_level="DEBUG"
        )

    @classmethod
    def for_production(cls) -> 'EnrichmentConfig':
        """Create configuration optimized for production."""
        return cls(
            max_workers=8,              # Lookups are I/O bound
            request_timeout=30.0,
            enable_progress_bar=False,  # No console output
            log_level="INFO"
        )

    @classmethod
    def from_env(cls, prefix: str = "PARTFILL_", env_file: Optional[str] = None) -> 'EnrichmentConfig':
        """
        Build a configuration from environment variables.

        Loads ``.env`` first (existing environment variables win), then reads
        ``<prefix>MAX_WORKERS``, ``<prefix>REQUEST_TIMEOUT``,
        ``<prefix>LOG_LEVEL``, ``<prefix>LOG_DIR`` and
        ``<prefix>PROGRESS_BAR``. Unset variables keep their defaults.
        """
        load_dotenv(env_file)

        kwargs = {}
        if os.getenv(f"{prefix}MAX_WORKERS"):
            kwargs["max_workers"] = int(os.environ[f"{prefix}MAX_WORKERS"])
        if os.getenv(f"{prefix}REQUEST_TIMEOUT"):
            kwargs["request_timeout"] = float(os.environ[f"{prefix}REQUEST_TIMEOUT"])
        if os.getenv(f"{prefix}LOG_LEVEL"):
            kwargs["log_level"] = os.environ[f"{prefix}LOG_LEVEL"].upper()
        if os.getenv(f"{prefix}LOG_DIR"):
            kwargs["log_dir"] = os.environ[f"{prefix}LOG_DIR"]
        if os.getenv(f"{prefix}PROGRESS_BAR"):
            kwargs["enable_progress_bar"] = os.environ[f"{prefix}PROGRESS_BAR"].lower() in _TRUTHY

        return cls(**kwargs)

"""
Pixel Studio configuration.
Environment variables and defaults shared by the CLI, the API and the pipeline.
"""
from __future__ import annotations

import os

from .models import ColorAlgorithm


class Config:
    """Configuration read from ``PIXEL_STUDIO_*`` environment variables."""

    # Logging
    LOG_LEVEL: str = os.environ.get("PIXEL_STUDIO_LOG_LEVEL", "INFO")

    # Conversion defaults
    DEFAULT_BLOCK_SIZE: int = int(os.environ.get("PIXEL_STUDIO_DEFAULT_BLOCK_SIZE", "8"))
    DEFAULT_ALGORITHM: str = os.environ.get("PIXEL_STUDIO_DEFAULT_ALGORITHM", "euclidean")

    # I/O limits
    HTTP_TIMEOUT: float = float(os.environ.get("PIXEL_STUDIO_HTTP_TIMEOUT", "10"))
    MAX_PALETTE_BYTES: int = int(os.environ.get("PIXEL_STUDIO_MAX_PALETTE_BYTES", str(1024 * 1024)))

    @classmethod
    def validate_algorithm(cls, algorithm: str) -> bool:
        """Validate algorithm name."""
        return algorithm in {item.value for item in ColorAlgorithm}

    @classmethod
    def validate_block_size(cls, block_size: int) -> bool:
        """Validate block size."""
        return int(block_size) >= 1

    @classmethod
    def default_algorithm(cls) -> ColorAlgorithm:
        if not cls.validate_algorithm(cls.DEFAULT_ALGORITHM):
            return ColorAlgorithm.EUCLIDEAN
        return ColorAlgorithm(cls.DEFAULT_ALGORITHM)


config = Config()

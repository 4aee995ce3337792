"""
vadbatch.logging - Centralized logging configuration.

Per-file diagnostics are emitted at WARNING so they reach stderr without
--verbose; DEBUG adds endpoint selection and request timing.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("vadbatch")


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the vadbatch package.

    Args:
        verbose: If True, enable DEBUG level logging; otherwise WARNING level
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )
    # urllib3 connection chatter drowns out per-file lines at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

"""Shared logging helpers for the controller."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for container logs. Pass ``force=True``
    to reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=force,
    )
    # Chatty third-party loggers stay at WARNING unless we are debugging.
    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in ("botocore", "boto3", "urllib3", "kubernetes"):
        logging.getLogger(name).setLevel(max(library_level, level))

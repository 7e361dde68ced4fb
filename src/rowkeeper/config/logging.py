"""Root logger setup for the command line entry point."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(
    *, level: int = logging.INFO, echo_sql: bool = False, force: bool = False
) -> None:
    """Configure the root logger once.

    ``echo_sql`` raises the ``sqlalchemy.engine`` logger to INFO so every
    statement the commit pipeline and id generator issue is printed. Pass
    ``force=True`` to replace handlers installed earlier (tests do).
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if echo_sql else logging.WARNING
    )

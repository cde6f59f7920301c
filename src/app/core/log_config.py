# src/app/core/log_config.py
import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Konfiguriert das Root-Logging einmalig beim App-Start."""
    logging.basicConfig(level=level.upper(), format=_FORMAT)
    # httpx loggt jede Anfrage auf INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

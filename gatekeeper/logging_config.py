# =======================================================================================
# gatekeeper/logging_config.py - Logging Setup
# =======================================================================================
import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    numeric = getattr(logging, str(level).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=numeric, format=LOG_FORMAT)
    root.setLevel(numeric)
    # Security-relevant events (logins, user changes, resets) share this logger.
    logging.getLogger("gatekeeper.audit").setLevel(numeric)

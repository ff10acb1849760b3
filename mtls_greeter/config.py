# mtls_greeter/config.py
import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

from mtls_greeter.policy import ClientAuthPolicy

DEFAULT_PORT = 443
DEFAULT_SRVHOST = "localhost"

# Seconds. 5 min read allows for curl prompting for a password.
READ_TIMEOUT = 5 * 60
# uvicorn has no per-response write deadline, so this is not applied.
WRITE_TIMEOUT = 10
CLIENT_TIMEOUT = 15.0

REQUEST_BODY = b"World"


@dataclass(frozen=True)
class ServerConfig:
    host: str
    srvcert: str
    srvkey: str
    port: int = DEFAULT_PORT
    cacert: Optional[str] = None
    certopt: ClientAuthPolicy = ClientAuthPolicy.NO_CLIENT_CERT


@dataclass(frozen=True)
class ClientConfig:
    cacert: str
    srvhost: str = DEFAULT_SRVHOST
    clientcert: Optional[str] = None
    clientkey: Optional[str] = None
    timeout: float = CLIENT_TIMEOUT

    @property
    def url(self) -> str:
        return f"https://{self.srvhost}"

    @property
    def has_key_pair(self) -> bool:
        return bool(self.clientcert and self.clientkey)


def setup_logging(name: str) -> logging.Logger:
    level_name = os.getenv("MTLS_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    unknown = not isinstance(level, int)
    if unknown:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger(name)
    if unknown:
        logger.warning("Unknown MTLS_LOG_LEVEL %r, using INFO", level_name)
    return logger


def fatal(logger: logging.Logger, msg: str, *args) -> None:
    """Log a single critical line and terminate the process."""
    logger.critical(msg, *args)
    sys.exit(1)

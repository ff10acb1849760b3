# mtls_greeter/server/runner.py
import logging
import ssl

import uvicorn

from mtls_greeter.config import READ_TIMEOUT, fatal
from mtls_greeter.policy import ServerTLSOptions

logger = logging.getLogger("mtls-server")

# Go-style ":port" listens on every interface.
DEFAULT_BIND = "0.0.0.0"


def build_server(app, tls: ServerTLSOptions, port: int, bind: str = DEFAULT_BIND) -> uvicorn.Server:
    config = uvicorn.Config(
        app,
        host=bind,
        port=port,
        timeout_keep_alive=READ_TIMEOUT,
        log_config=None,
        log_level="info",
        **tls.uvicorn_kwargs(),
    )
    return uvicorn.Server(config)


def load_server(server: uvicorn.Server) -> None:
    """Load the TLS context up front so bad cert/key files fail before listening."""
    try:
        server.config.load()
    except (OSError, ssl.SSLError) as e:
        fatal(logger, "Error loading server certificate %s / key %s: %s",
              server.config.ssl_certfile, server.config.ssl_keyfile, e)


def serve(app, tls: ServerTLSOptions, port: int) -> None:
    server = build_server(app, tls, port)
    load_server(server)
    logger.info(
        "Client auth policy %d (%s), verify mode %s",
        tls.policy, tls.policy.name, tls.cert_reqs.name,
    )
    logger.info("Starting HTTPS server on host %s and port %s", tls.server_name, port)
    server.run()

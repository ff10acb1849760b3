# mtls_greeter/server/simple.py
import sys

from mtls_greeter.config import setup_logging
from mtls_greeter.policy import ClientAuthPolicy, build_server_tls
from mtls_greeter.server.app import create_app
from mtls_greeter.server.cli import parse_server_config
from mtls_greeter.server.runner import serve

SERVER_LABEL = "Simple Server"

USAGE = """usage:

simpleserver -host <hostname> -srvcert <serverCertFile> -srvkey <serverPrivateKeyFile> [-port <port> -help]

Options:
  -help       Prints this message
  -host       Required, a DNS resolvable host name or 'localhost'
  -srvcert    Required, the name the server's certificate file
  -srvkey     Required, the name the server's key certificate file
  -port       Optional, the https port for the server to listen on, defaults to 443"""


def main(argv=None):
    logger = setup_logging("mtls-server")
    config = parse_server_config(argv, "simpleserver", USAGE)
    if config is None:
        return

    tls = build_server_tls(config.host, config.srvcert, config.srvkey, None, ClientAuthPolicy.NO_CLIENT_CERT)
    logger.debug("TLS options: %s", tls)
    serve(create_app(SERVER_LABEL), tls, config.port)


if __name__ == "__main__":
    sys.exit(main())

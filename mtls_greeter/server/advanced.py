# mtls_greeter/server/advanced.py
import sys

from mtls_greeter.config import fatal, setup_logging
from mtls_greeter.errors import CertificateLoadError
from mtls_greeter.policy import build_server_tls
from mtls_greeter.server.app import create_app
from mtls_greeter.server.cli import parse_server_config
from mtls_greeter.server.runner import serve

SERVER_LABEL = "Advanced Server"

USAGE = """usage:

advserver -host <hostname> -srvcert <serverCertFile> -cacert <caCertFile> -srvkey <serverPrivateKeyFile> [-port <port> -certopt <certopt> -help]

Options:
  -help       Prints this message
  -host       Required, a DNS resolvable host name
  -srvcert    Required, the name the server's certificate file
  -cacert     Required, the name of the CA that signed the client's certificate
  -srvkey     Required, the name the server's key certificate file
  -port       Optional, the https port for the server to listen on, defaults to 443
  -certopt    Optional, specifies the option for authenticating a client via certificate:
              0 - certificate not required,
              1 - request a certificate but it's not required,
              2 - require any client certificate
              3 - if provided, verify the client certificate is authorized
              4 - require certificate and verify it's authorized"""


def main(argv=None):
    logger = setup_logging("mtls-server")
    config = parse_server_config(argv, "advserver", USAGE, advanced=True)
    if config is None:
        return

    try:
        tls = build_server_tls(config.host, config.srvcert, config.srvkey, config.cacert, config.certopt)
    except CertificateLoadError as e:
        fatal(logger, "%s", e)

    serve(create_app(SERVER_LABEL), tls, config.port)


if __name__ == "__main__":
    sys.exit(main())

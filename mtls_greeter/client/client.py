# mtls_greeter/client/client.py
import argparse
import logging
import ssl
import sys

import httpx

from mtls_greeter.config import DEFAULT_SRVHOST, REQUEST_BODY, ClientConfig, fatal, setup_logging
from mtls_greeter.errors import CertificateLoadError
from mtls_greeter.policy import ca_bundle_pem, load_ca_bundle

logger = logging.getLogger("mtls-client")

USAGE = """usage:

client -cacert <caFile> [-clientcert <clientCertificateFile> -clientkey <clientPrivateKeyFile> -srvhost <srvHostName> -help]

Options:
  -help       Optional, Prints this message
  -srvhost    Optional, the server's hostname (optionally host:port), defaults to 'localhost'
  -clientcert Optional, the name the clients's certificate file
  -clientkey  Optional, the name the client's key certificate file
  -cacert     Required, the name of the CA that signed the server's certificate"""


def build_ssl_context(config: ClientConfig) -> ssl.SSLContext:
    """Trust only the configured CA bundle; present the key pair when both halves are given."""
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    ctx.load_verify_locations(cadata=ca_bundle_pem(load_ca_bundle(config.cacert)))

    if config.has_key_pair:
        try:
            ctx.load_cert_chain(certfile=config.clientcert, keyfile=config.clientkey)
        except (OSError, ssl.SSLError) as e:
            raise CertificateLoadError(
                f"Error creating x509 keypair from client cert file {config.clientcert} "
                f"and client key file {config.clientkey}: {e}"
            ) from e
    return ctx


def call_server(config: ClientConfig) -> httpx.Response:
    ctx = build_ssl_context(config)
    with httpx.Client(verify=ctx, timeout=config.timeout) as client:
        return client.request("GET", config.url, content=REQUEST_BODY)


def parse_client_config(argv):
    parser = argparse.ArgumentParser(prog="client", add_help=False)
    parser.add_argument("-help", action="store_true")
    parser.add_argument("-srvhost", default=DEFAULT_SRVHOST)
    parser.add_argument("-cacert", default="")
    parser.add_argument("-clientcert", default="")
    parser.add_argument("-clientkey", default="")
    args = parser.parse_args(argv)

    if args.help:
        print(USAGE)
        return None
    if not args.cacert:
        fatal(logger, "caCert is required but missing:\n%s", USAGE)
    if bool(args.clientcert) != bool(args.clientkey):
        logger.warning("Both -clientcert and -clientkey are needed; no client certificate will be sent")

    return ClientConfig(
        cacert=args.cacert,
        srvhost=args.srvhost,
        clientcert=args.clientcert or None,
        clientkey=args.clientkey or None,
    )


def main(argv=None):
    setup_logging("mtls-client")
    config = parse_client_config(argv)
    if config is None:
        return

    logger.info("CAFile: %s", config.cacert)
    try:
        r = call_server(config)
    except CertificateLoadError as e:
        fatal(logger, "%s", e)
    except httpx.TransportError as e:
        fatal(logger, "Transport error received on https request to %s: %s: %s",
              config.url, type(e).__name__, e)
    except httpx.HTTPError as e:
        fatal(logger, "Unexpected error received: %s: %s", type(e).__name__, e)

    print(f"\nResponse from server: \n\tHTTP status: {r.status_code} {r.reason_phrase}\n\tBody: {r.text}")


if __name__ == "__main__":
    sys.exit(main())

# mtls_greeter/server/cli.py
import argparse
import logging

from mtls_greeter.config import DEFAULT_PORT, ServerConfig, fatal
from mtls_greeter.errors import InvalidPolicyError
from mtls_greeter.policy import ClientAuthPolicy

logger = logging.getLogger("mtls-server")


def server_parser(prog: str, advanced: bool) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, add_help=False)
    parser.add_argument("-help", action="store_true")
    parser.add_argument("-host", default="")
    parser.add_argument("-port", type=int, default=DEFAULT_PORT)
    parser.add_argument("-srvcert", default="")
    parser.add_argument("-srvkey", default="")
    if advanced:
        parser.add_argument("-cacert", default="")
        parser.add_argument("-certopt", type=int, default=0)
    return parser


def parse_server_config(argv, prog: str, usage: str, advanced: bool = False):
    """Parse flags into a ServerConfig, or None when -help was given."""
    args = server_parser(prog, advanced).parse_args(argv)
    if args.help:
        print(usage)
        return None

    required = [args.host, args.srvcert, args.srvkey]
    if advanced:
        required.append(args.cacert)
    if not all(required):
        fatal(logger, "One or more required fields missing:\n%s", usage)

    if not advanced:
        return ServerConfig(host=args.host, port=args.port, srvcert=args.srvcert, srvkey=args.srvkey)

    try:
        certopt = ClientAuthPolicy.parse(args.certopt)
    except InvalidPolicyError:
        fatal(
            logger,
            "Invalid value %d, provided for 'certopt' flag. It must be a number between 0 and 4 inclusive.\n%s",
            args.certopt, usage,
        )

    return ServerConfig(
        host=args.host,
        port=args.port,
        srvcert=args.srvcert,
        srvkey=args.srvkey,
        cacert=args.cacert,
        certopt=certopt,
    )

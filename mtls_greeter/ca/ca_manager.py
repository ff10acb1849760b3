# mtls_greeter/ca/ca_manager.py
"""Throw-away PKI for running the greeter over mTLS.

``mtls-gencerts -out pki`` writes::

    pki/ca.crt                      root CA, hand to -cacert on both sides
    pki/server.crt, pki/server.key  for -srvcert / -srvkey
    pki/client.crt, pki/client.key  for -clientcert / -clientkey
"""
import argparse
import datetime
import logging
import sys
from pathlib import Path

from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID
from cryptography.hazmat.primitives import hashes, serialization

from mtls_greeter.ca.csr_tools import create_csr, generate_private_key, write_key_to_pem
from mtls_greeter.config import fatal, setup_logging

logger = logging.getLogger("mtls-pki")

DEFAULT_HOSTS = ["localhost", "127.0.0.1"]


def _now():
    return datetime.datetime.now(datetime.timezone.utc)


def _key_usage(ca: bool) -> x509.KeyUsage:
    """keyCertSign/cRLSign for the CA, digitalSignature/keyEncipherment for leaves."""
    return x509.KeyUsage(
        digital_signature=not ca,
        content_commitment=False,
        key_encipherment=not ca,
        data_encipherment=False,
        key_agreement=False,
        key_cert_sign=ca,
        crl_sign=ca,
        encipher_only=False,
        decipher_only=False,
    )


def _builder(subject, issuer, public_key, issuer_public_key, days_valid, ca: bool):
    now = _now()
    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=days_valid))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .add_extension(_key_usage(ca), critical=True)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_public_key),
            critical=False
        )
    )


# -----------------------------
# Root CA
# -----------------------------
def create_self_signed_root(common_name: str = "mtls-greeter Root CA", key_size: int = 4096, days_valid: int = 3650):
    key = generate_private_key(key_size)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    cert = _builder(name, name, key.public_key(), key.public_key(), days_valid, ca=True).sign(
        private_key=key, algorithm=hashes.SHA256()
    )
    logger.info("Root CA created: %s", common_name)
    return key, cert


# -----------------------------
# Sign CSR (server / client certificate)
# -----------------------------
def sign_csr(ca_key, ca_cert, csr_pem_bytes, days_valid=365, is_server_cert=True):
    csr = x509.load_pem_x509_csr(csr_pem_bytes)
    usage = ExtendedKeyUsageOID.SERVER_AUTH if is_server_cert else ExtendedKeyUsageOID.CLIENT_AUTH
    builder = _builder(
        csr.subject, ca_cert.subject, csr.public_key(), ca_key.public_key(), days_valid, ca=False
    ).add_extension(x509.ExtendedKeyUsage([usage]), critical=False)

    # Copy SAN if present in CSR
    try:
        san = csr.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        builder = builder.add_extension(san.value, critical=False)
    except x509.ExtensionNotFound:
        pass

    return builder.sign(private_key=ca_key, algorithm=hashes.SHA256())


def write_certificate(path, *certs):
    """Write one or more certificates as a PEM file (leaf first)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        for c in certs:
            f.write(c.public_bytes(serialization.Encoding.PEM))
    return path


def create_entity(name, ca_key, ca_cert, out_dir, san_list=None, is_server_cert=True, days_valid=365, key_size=2048):
    """Create <name>.key and <name>.crt signed by the CA under out_dir."""
    out_dir = Path(out_dir)
    key = generate_private_key(key_size)
    key_path = write_key_to_pem(key, out_dir / f"{name}.key")

    csr = create_csr(key, common_name=name, san_list=san_list)
    csr_pem = csr.public_bytes(encoding=serialization.Encoding.PEM)
    cert = sign_csr(ca_key, ca_cert, csr_pem, days_valid=days_valid, is_server_cert=is_server_cert)
    cert_path = write_certificate(out_dir / f"{name}.crt", cert)

    logger.info("%s certificate created: %s (valid for %d days)", name, cert_path, days_valid)
    return key_path, cert_path


def setup_demo_pki(out_dir, hosts=None, days_valid=365, key_size=4096):
    """Create a root CA plus one server and one client certificate.

    Returns a dict of the written file paths keyed by role.
    """
    out_dir = Path(out_dir)
    hosts = list(hosts or DEFAULT_HOSTS)

    ca_key, ca_cert = create_self_signed_root(key_size=key_size)
    write_key_to_pem(ca_key, out_dir / "ca.key")
    ca_path = write_certificate(out_dir / "ca.crt", ca_cert)

    leaf_size = min(key_size, 2048)
    server_key, server_cert = create_entity(
        "server", ca_key, ca_cert, out_dir,
        san_list=hosts, is_server_cert=True, days_valid=days_valid, key_size=leaf_size,
    )
    client_key, client_cert = create_entity(
        "client", ca_key, ca_cert, out_dir,
        is_server_cert=False, days_valid=days_valid, key_size=leaf_size,
    )
    return {
        "ca": ca_path,
        "server_cert": server_cert,
        "server_key": server_key,
        "client_cert": client_cert,
        "client_key": client_key,
    }


USAGE = """usage:

gencerts [-out <dir> -hosts <host,host> -days <days> -help]

Options:
  -help       Prints this message
  -out        Optional, directory to write the PKI into, defaults to 'pki'
  -hosts      Optional, comma separated server host names/IPs, defaults to 'localhost,127.0.0.1'
  -days       Optional, validity of the server and client certificates, defaults to 365"""


def main(argv=None):
    parser = argparse.ArgumentParser(prog="gencerts", add_help=False)
    parser.add_argument("-help", action="store_true")
    parser.add_argument("-out", default="pki")
    parser.add_argument("-hosts", default=",".join(DEFAULT_HOSTS))
    parser.add_argument("-days", type=int, default=365)
    args = parser.parse_args(argv)

    if args.help:
        print(USAGE)
        return

    setup_logging("mtls-pki")
    hosts = [h.strip() for h in args.hosts.split(",") if h.strip()]
    if not hosts or args.days <= 0:
        fatal(logger, "Invalid -hosts or -days value:\n%s", USAGE)

    try:
        paths = setup_demo_pki(args.out, hosts=hosts, days_valid=args.days)
    except OSError as e:
        fatal(logger, "Error writing PKI to %s: %s", args.out, e)

    print("\nGenerated files for mTLS:")
    for role, path in paths.items():
        print(f" - {role}: {path}")


if __name__ == "__main__":
    sys.exit(main())

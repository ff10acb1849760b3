# mtls_greeter/ca/csr_tools.py
from cryptography.hazmat.primitives import serialization, hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography import x509
from cryptography.x509.oid import NameOID
from pathlib import Path
import ipaddress


def generate_private_key(key_size: int = 2048):
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def write_key_to_pem(key, path):
    """Write an unencrypted PKCS8 key readable only by the owner."""
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(pem)
    path.chmod(0o600)
    return path


def subject_alt_names(san_list):
    """Turn host strings into SAN entries; IP literals become IPAddress."""
    alt_names = []
    for entry in san_list:
        try:
            alt_names.append(x509.IPAddress(ipaddress.ip_address(entry)))
        except ValueError:
            alt_names.append(x509.DNSName(entry))
    return alt_names


def create_csr(key, common_name: str, san_list: list = None):
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    csr_builder = x509.CertificateSigningRequestBuilder().subject_name(name)

    if san_list:
        csr_builder = csr_builder.add_extension(
            x509.SubjectAlternativeName(subject_alt_names(san_list)),
            critical=False
        )

    return csr_builder.sign(key, hashes.SHA256())

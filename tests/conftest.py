import socket
import threading
import time
from contextlib import contextmanager

import pytest

from mtls_greeter.ca.ca_manager import create_entity, create_self_signed_root, setup_demo_pki
from mtls_greeter.server.runner import build_server


@pytest.fixture(scope="session")
def pki(tmp_path_factory):
    out_dir = tmp_path_factory.mktemp("pki")
    paths = setup_demo_pki(out_dir, key_size=2048)

    # client certificate from an unrelated CA
    foreign_key, foreign_ca = create_self_signed_root("Foreign CA", key_size=2048)
    key_path, cert_path = create_entity(
        "foreign", foreign_key, foreign_ca, out_dir, is_server_cert=False,
    )
    paths["foreign_cert"] = cert_path
    paths["foreign_key"] = key_path
    return {k: str(v) for k, v in paths.items()}


def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@contextmanager
def running_server(app, tls):
    port = free_port()
    server = build_server(app, tls, port, bind="127.0.0.1")
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()
    try:
        deadline = time.monotonic() + 10
        while not server.started:
            if not thread.is_alive() or time.monotonic() > deadline:
                raise RuntimeError("server did not start")
            time.sleep(0.05)
        yield f"localhost:{port}"
    finally:
        server.should_exit = True
        thread.join(timeout=10)


@pytest.fixture
def run_server():
    return running_server

import httpx
import pytest

from mtls_greeter.client import client
from mtls_greeter.client.client import call_server
from mtls_greeter.config import ClientConfig
from mtls_greeter.policy import ClientAuthPolicy, build_server_tls
from mtls_greeter.server.app import create_app


def _tls(pki, policy, cacert=None):
    return build_server_tls("localhost", pki["server_cert"], pki["server_key"], cacert, policy)


def test_simple_server_without_client_cert(pki, run_server):
    tls = _tls(pki, ClientAuthPolicy.NO_CLIENT_CERT)
    with run_server(create_app("Simple Server"), tls) as srvhost:
        r = call_server(ClientConfig(cacert=pki["ca"], srvhost=srvhost))
    assert r.status_code == 200
    assert r.text == "Hello, World from Simple Server!"


def test_required_cert_missing_fails_handshake(pki, run_server):
    tls = _tls(pki, ClientAuthPolicy.REQUIRE_AND_VERIFY_CLIENT_CERT, pki["ca"])
    with run_server(create_app("Advanced Server"), tls) as srvhost:
        with pytest.raises(httpx.TransportError):
            call_server(ClientConfig(cacert=pki["ca"], srvhost=srvhost))


def test_required_cert_presented(pki, run_server):
    tls = _tls(pki, ClientAuthPolicy.REQUIRE_AND_VERIFY_CLIENT_CERT, pki["ca"])
    with run_server(create_app("Advanced Server"), tls) as srvhost:
        r = call_server(ClientConfig(
            cacert=pki["ca"], srvhost=srvhost,
            clientcert=pki["client_cert"], clientkey=pki["client_key"],
        ))
    assert r.status_code == 200
    assert r.text == "Hello, World from Advanced Server!"


def test_foreign_client_cert_rejected(pki, run_server):
    tls = _tls(pki, ClientAuthPolicy.REQUIRE_AND_VERIFY_CLIENT_CERT, pki["ca"])
    with run_server(create_app("Advanced Server"), tls) as srvhost:
        with pytest.raises(httpx.TransportError):
            call_server(ClientConfig(
                cacert=pki["ca"], srvhost=srvhost,
                clientcert=pki["foreign_cert"], clientkey=pki["foreign_key"],
            ))


@pytest.mark.parametrize("with_cert", [False, True])
def test_verify_if_given_accepts_both(pki, run_server, with_cert):
    tls = _tls(pki, ClientAuthPolicy.VERIFY_CLIENT_CERT_IF_GIVEN, pki["ca"])
    extra = {"clientcert": pki["client_cert"], "clientkey": pki["client_key"]} if with_cert else {}
    with run_server(create_app("Advanced Server"), tls) as srvhost:
        r = call_server(ClientConfig(cacert=pki["ca"], srvhost=srvhost, **extra))
    assert r.text == "Hello, World from Advanced Server!"


def test_untrusted_server_is_rejected(pki, run_server):
    tls = _tls(pki, ClientAuthPolicy.NO_CLIENT_CERT)
    with run_server(create_app("Simple Server"), tls) as srvhost:
        with pytest.raises(httpx.ConnectError):
            # the foreign CA did not sign the server certificate
            call_server(ClientConfig(cacert=pki["foreign_cert"], srvhost=srvhost))


def test_client_main_prints_response(pki, run_server, capsys):
    tls = _tls(pki, ClientAuthPolicy.NO_CLIENT_CERT)
    with run_server(create_app("Simple Server"), tls) as srvhost:
        client.main(["-srvhost", srvhost, "-cacert", pki["ca"]])
    out = capsys.readouterr().out
    assert "HTTP status: 200 OK" in out
    assert "Body: Hello, World from Simple Server!" in out


def test_client_main_handshake_failure_is_fatal(pki, run_server, caplog):
    tls = _tls(pki, ClientAuthPolicy.REQUIRE_AND_VERIFY_CLIENT_CERT, pki["ca"])
    with run_server(create_app("Advanced Server"), tls) as srvhost:
        with pytest.raises(SystemExit) as exc:
            client.main(["-srvhost", srvhost, "-cacert", pki["ca"]])
    assert exc.value.code == 1
    assert "Transport error received" in caplog.text


def _client_config(pki, srvhost, cert=None):
    if cert is None:
        return ClientConfig(cacert=pki["ca"], srvhost=srvhost)
    return ClientConfig(cacert=pki["ca"], srvhost=srvhost,
                        clientcert=pki[f"{cert}_cert"], clientkey=pki[f"{cert}_key"])


@pytest.mark.parametrize("cert", [None, "client"])
def test_request_policy_accepts_with_or_without_cert(pki, run_server, cert):
    tls = _tls(pki, ClientAuthPolicy.REQUEST_CLIENT_CERT, pki["ca"])
    with run_server(create_app("Advanced Server"), tls) as srvhost:
        r = call_server(_client_config(pki, srvhost, cert))
    assert r.status_code == 200
    assert r.text == "Hello, World from Advanced Server!"


def test_require_any_policy_without_cert_fails(pki, run_server):
    tls = _tls(pki, ClientAuthPolicy.REQUIRE_ANY_CLIENT_CERT, pki["ca"])
    with run_server(create_app("Advanced Server"), tls) as srvhost:
        with pytest.raises(httpx.TransportError):
            call_server(_client_config(pki, srvhost))


def test_require_any_policy_with_ca_signed_cert(pki, run_server):
    tls = _tls(pki, ClientAuthPolicy.REQUIRE_ANY_CLIENT_CERT, pki["ca"])
    with run_server(create_app("Advanced Server"), tls) as srvhost:
        r = call_server(_client_config(pki, srvhost, "client"))
    assert r.text == "Hello, World from Advanced Server!"


def test_require_any_policy_still_verifies_chain(pki, run_server):
    # ssl offers no verify callback, so an unrelated CA is rejected as under policy 4
    tls = _tls(pki, ClientAuthPolicy.REQUIRE_ANY_CLIENT_CERT, pki["ca"])
    with run_server(create_app("Advanced Server"), tls) as srvhost:
        with pytest.raises(httpx.TransportError):
            call_server(_client_config(pki, srvhost, "foreign"))

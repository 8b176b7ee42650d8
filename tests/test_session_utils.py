import pytest
import requests

from wadors_loader.session_utils import (
    add_certs_to_session,
    create_session,
    create_session_from_auth,
    create_session_from_user_pass,
)


def test_create_session():
    session = create_session()
    assert isinstance(session, requests.Session)
    assert session.auth is None


def test_create_session_from_auth():
    auth = requests.auth.HTTPDigestAuth('foo', 'bar')
    session = create_session_from_auth(auth)
    assert session.auth is auth


def test_create_session_from_user_pass():
    session = create_session_from_user_pass('foo', 'bar')
    assert session.auth == requests.auth.HTTPBasicAuth('foo', 'bar')


def test_add_certs_to_session(tmp_path):
    ca_bundle = tmp_path.joinpath('ca.pem')
    ca_bundle.write_text('')
    cert = tmp_path.joinpath('cert.pem')
    cert.write_text('')
    session = add_certs_to_session(create_session(), str(ca_bundle), str(cert))
    assert session.verify == str(ca_bundle)
    assert session.cert == str(cert)


def test_add_certs_to_session_missing_file(tmp_path):
    with pytest.raises(OSError):
        add_certs_to_session(
            create_session(), ca_bundle=str(tmp_path.joinpath('missing.pem'))
        )

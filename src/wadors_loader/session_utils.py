import logging
import os
from typing import Optional

import requests


logger = logging.getLogger(__name__)


def create_session() -> requests.Session:
    """Creates an unauthorized session.

    Returns
    -------
    requests.Session
        unauthorized session

    """
    logger.debug('initialize HTTP session')
    return requests.Session()


def create_session_from_auth(
    auth: requests.auth.AuthBase
) -> requests.Session:
    """Creates a session from a given AuthBase object.

    Parameters
    ----------
    auth: requests.auth.AuthBase
        an implementation of `requests.auth.AuthBase` to be used for
        authentication with the DICOMweb service

    Returns
    -------
    requests.Session
        authorized session

    """
    session = create_session()
    logger.debug('authenticate HTTP session')
    session.auth = auth
    return session


def create_session_from_user_pass(
    username: str,
    password: str
) -> requests.Session:
    """Creates a session from a given username and password.

    Parameters
    ----------
    username: str
        username for authentication with the DICOMweb service
    password: str
        password for authentication with the DICOMweb service

    Returns
    -------
    requests.Session
        authorized session

    """
    return create_session_from_auth(
        requests.auth.HTTPBasicAuth(username, password)
    )


def add_certs_to_session(
    session: requests.Session,
    ca_bundle: Optional[str] = None,
    cert: Optional[str] = None
) -> requests.Session:
    """Adds CA bundle and certificate to an existing session.

    Parameters
    ----------
    session: requests.Session
        input session
    ca_bundle: str, optional
        path to CA bundle file
    cert: str, optional
        path to client certificate file in Privacy Enhanced Mail (PEM) format

    Returns
    -------
    requests.Session
        verified session

    Raises
    ------
    OSError
        When one of the files does not exist

    """
    if ca_bundle is not None:
        ca_bundle = os.path.expanduser(os.path.expandvars(ca_bundle))
        if not os.path.exists(ca_bundle):
            raise OSError(f'CA bundle file does not exist: {ca_bundle}')
        logger.debug(f'use CA bundle file: {ca_bundle}')
        session.verify = ca_bundle
    if cert is not None:
        cert = os.path.expanduser(os.path.expandvars(cert))
        if not os.path.exists(cert):
            raise OSError(f'Certificate file does not exist: {cert}')
        logger.debug(f'use certificate file: {cert}')
        session.cert = cert
    return session

# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
Connection utilities for the Spectrum Virtualize REST API.

The management API is token based: a POST to /rest/auth with the
credentials in headers returns a token, which is then sent as
X-Auth-Token on every read. All reads are POSTs by API convention.
"""

import json
import logging
import ssl
import threading
import time
from typing import Any, Optional

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3 import PoolManager
from urllib3.util.ssl_ import create_urllib3_context

from spectrum_exporter.utils import get_field

LOG = logging.getLogger(__name__)

AUTH_PATH = "/rest/auth"
CHUNK_SIZE = 8192
# Socket timeout forced on a connection whose probe deadline has passed
EXPIRED_SOCKET_TIMEOUT = 0.001


class SpectrumError(Exception):
    """Base class for errors talking to a Spectrum Virtualize target."""


class AuthError(SpectrumError):
    def __init__(self, target: str, cause):
        self.target = target
        self.cause = cause
        super().__init__(f"authentication to {target} failed: {cause}")


class FetchError(SpectrumError):
    def __init__(self, path: str, cause):
        self.path = path
        self.cause = cause
        super().__init__(f"fetch of {path} failed: {cause}")


class SSLAdapter(HTTPAdapter):
    """An HTTPS Transport Adapter that uses an explicit SSL context."""
    def __init__(self, ssl_context: ssl.SSLContext, **kwargs):
        self.ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, connections, maxsize, block=False, **pool_kwargs):
        self.poolmanager = PoolManager(num_pools=connections, maxsize=maxsize,
                                       block=block, ssl_context=self.ssl_context, **pool_kwargs)


def build_ssl_context(extra_ca: Optional[str] = None, insecure: bool = False) -> ssl.SSLContext:
    """
    Build the trust store used for every target: system roots plus an
    optional PEM bundle of extra CAs.

    Args:
        extra_ca: Path to a PEM file with additional CA certificates
        insecure: Disable certificate and hostname verification entirely

    Returns:
        Configured ssl.SSLContext
    """
    if insecure:
        context = create_urllib3_context(cert_reqs=ssl.CERT_NONE)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    context = create_urllib3_context(cert_reqs=ssl.CERT_REQUIRED)
    context.load_default_certs()
    if extra_ca:
        # Raises (FileNotFoundError, ssl.SSLError) for unreadable or bad PEM
        context.load_verify_locations(cafile=extra_ca)
    return context


class Transport:
    """
    Connection pool and TLS settings shared by all concurrent probes.

    Each probe takes its own requests.Session from session(); the sessions
    share the adapter (and so the pools) but never cookies or headers.
    """

    def __init__(self, adapter: HTTPAdapter, verify: bool = True):
        self.adapter = adapter
        self.verify = verify

    def session(self) -> requests.Session:
        session = requests.Session()
        session.mount("https://", self.adapter)
        session.mount("http://", self.adapter)
        session.verify = self.verify
        session.headers.update({"Accept": "application/json"})
        return session

    def close(self) -> None:
        self.adapter.close()


def build_transport(extra_ca: Optional[str] = None, insecure: bool = False, pool_maxsize: int = 32) -> Transport:
    """Return the process-wide Transport for the given TLS settings."""
    context = build_ssl_context(extra_ca=extra_ca, insecure=insecure)
    if insecure:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        LOG.warning("TLS validation is DISABLED (--insecure). This is insecure and should only be used for testing.")
    adapter = SSLAdapter(context, pool_connections=pool_maxsize, pool_maxsize=pool_maxsize)
    return Transport(adapter, verify=not insecure)


class Deadline:
    """A single time budget covering authentication and every fetch of a probe."""

    def __init__(self, seconds: float, clock=None):
        self._clock = clock or time.monotonic
        self.expires = self._clock() + seconds

    def remaining(self) -> float:
        return self.expires - self._clock()

    def expired(self) -> bool:
        return self.remaining() <= 0

    def timeout(self, path: str) -> float:
        """Remaining seconds for the next request, or FetchError once spent."""
        remaining = self.remaining()
        if remaining <= 0:
            raise FetchError(path, "deadline exceeded")
        return remaining


def _expire_socket(resp) -> None:
    """Make the read blocked on resp's connection time out on its next recv."""
    conn = getattr(getattr(resp, "raw", None), "connection", None)
    sock = getattr(conn, "sock", None)
    if sock is None:
        return
    try:
        sock.settimeout(EXPIRED_SOCKET_TIMEOUT)
    except OSError as e:
        LOG.debug(f"Could not shorten socket timeout after deadline: {e}")


def _read_json(resp, deadline: Deadline, path: str) -> Any:
    """
    Read a streamed response body within the deadline and decode it.

    requests applies its timeout to each socket read, so a server trickling
    the body could otherwise keep the probe alive past the deadline. A
    watchdog shortens the socket timeout once the deadline passes, and the
    deadline is checked after every chunk and once the body is complete.

    Raises:
        FetchError: On deadline expiry, a broken body or undecodable JSON
    """
    watchdog = threading.Timer(max(deadline.remaining(), 0), _expire_socket, (resp,))
    watchdog.daemon = True
    watchdog.start()
    chunks = []
    try:
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            if deadline.expired():
                raise FetchError(path, "deadline exceeded")
            chunks.append(chunk)
    except requests.exceptions.RequestException as e:
        if deadline.expired():
            raise FetchError(path, "deadline exceeded") from e
        raise FetchError(path, e) from e
    finally:
        watchdog.cancel()
        resp.close()

    if deadline.expired():
        raise FetchError(path, "deadline exceeded")
    try:
        return json.loads(b"".join(chunks))
    except ValueError as e:
        raise FetchError(path, f"invalid JSON body: {e}") from e


class SpectrumSession:
    """
    An authenticated handle on one target, valid for one probe.

    The token is never refreshed; once it expires upstream every fetch
    fails and the probe is reported as failed.
    """

    def __init__(self, target: str, token: str, http, deadline: Deadline):
        self.target = target
        self.token = token
        self.http = http
        self.deadline = deadline

    def fetch(self, path: str, query: str = "") -> Any:
        """
        POST to path with the session token and return the decoded JSON.

        Raises:
            FetchError: On deadline expiry, transport errors, non-200 status
                or an undecodable body
        """
        url = f"{self.target}/{path.lstrip('/')}"
        if query:
            url = f"{url}?{query}"
        timeout = self.deadline.timeout(path)
        try:
            resp = self.http.post(url, headers={"X-Auth-Token": self.token}, timeout=timeout, stream=True)
        except requests.exceptions.RequestException as e:
            raise FetchError(path, e) from e
        if resp.status_code != 200:
            resp.close()
            raise FetchError(path, f"response code was {resp.status_code}, expected 200")
        return _read_json(resp, self.deadline, path)

    def __str__(self):
        return self.target


def authenticate(target: str, username: str, password: str, http, deadline: Deadline) -> SpectrumSession:
    """
    Log in to target and return a session carrying the token.

    Args:
        target: Normalized "scheme://host[:port]"
        username: API user, sent as X-Auth-Username
        password: API password, sent as X-Auth-Password
        http: requests.Session (or compatible) to send through
        deadline: Time budget of the enclosing probe

    Raises:
        AuthError: On any transport error, non-200 status or missing token
    """
    url = f"{target}{AUTH_PATH}"
    headers = {"X-Auth-Username": username, "X-Auth-Password": password}
    try:
        timeout = deadline.timeout(AUTH_PATH)
        resp = http.post(url, headers=headers, timeout=timeout, stream=True)
    except FetchError as e:
        raise AuthError(target, e.cause) from e
    except requests.exceptions.RequestException as e:
        raise AuthError(target, e) from e

    if resp.status_code != 200:
        resp.close()
        raise AuthError(target, f"login code was {resp.status_code}, expected 200")
    try:
        body = _read_json(resp, deadline, AUTH_PATH)
    except FetchError as e:
        raise AuthError(target, e.cause) from e

    token = get_field(body, "token") if isinstance(body, dict) else None
    if not isinstance(token, str) or not token:
        raise AuthError(target, "no token in login response")

    LOG.debug(f"Authenticated to {target}")
    return SpectrumSession(target, token, http, deadline)

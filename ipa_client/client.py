from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional
from urllib.parse import urlparse

import requests

from .errors import (
    IPAError,
    KerberosError,
    LoginError,
    RenewedLoginFailure,
    TransportError,
    UnexpectedStatus,
    unauthorized_http_error,
)
from .models import Credentials, KerberosCredentials, PasswordCredentials, TransportConfig
from .request import Request, new_request
from .response import Response, parse_response

log = logging.getLogger(__name__)

_KRB5_ENV_VARS = ("KRB5_CONFIG", "KRB5_CLIENT_KTNAME")
# Process-wide: the environment is shared by every client in the process.
_krb5_env_lock = threading.Lock()


@contextmanager
def krb5_environment(creds: KerberosCredentials) -> Iterator[None]:
    """Point GSSAPI at ``creds`` krb5.conf and keytab for the duration of a login.

    Kerberos logins in the process are serialized; the previous values are
    put back on exit.
    """
    with _krb5_env_lock:
        saved = {k: os.environ.get(k) for k in _KRB5_ENV_VARS}
        os.environ["KRB5_CONFIG"] = creds.krb5_config
        os.environ["KRB5_CLIENT_KTNAME"] = creds.keytab
        try:
            yield
        finally:
            for k, v in saved.items():
                if v is None:
                    os.environ.pop(k, None)
                else:
                    os.environ[k] = v


def kerberos_auth(creds: KerberosCredentials) -> Any:
    """SPNEGO auth handler for requests, acting as ``creds.principal``."""
    try:
        from requests_kerberos import HTTPKerberosAuth, OPTIONAL  # type: ignore
    except ImportError as e:
        raise KerberosError("Kerberos login requires the 'requests-kerberos' package") from e

    return HTTPKerberosAuth(
        mutual_authentication=OPTIONAL,
        principal=creds.principal,
        force_preemptive=True,
    )


class IPAClient:
    """Session with a FreeIPA server's JSON-RPC API.

    The session cookie lives in the requests.Session cookie jar. When the
    server answers 401 on an API call the client logs in again once and
    resends the call once; a second failure goes to the caller.
    """

    def __init__(
        self,
        host: str,
        credentials: Credentials,
        transport: Optional[TransportConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not isinstance(credentials, (PasswordCredentials, KerberosCredentials)):
            raise TypeError(f"unsupported credentials: {type(credentials).__name__}")

        self.uri_base = f"https://{host}/ipa"
        parsed = urlparse(self.uri_base)
        if not parsed.hostname:
            raise ValueError(f"invalid FreeIPA host: {host!r}")

        self.credentials = credentials
        self.transport = transport or TransportConfig()
        self.session = session if session is not None else requests.Session()
        self.transport.apply(self.session)

        self.authenticated = False
        # Bumped on every successful login; lets concurrent callers that all
        # saw a 401 share one re-login.
        self._generation = 0
        self._login_lock = threading.RLock()

    def __enter__(self) -> "IPAClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()
        self.authenticated = False

    # --- login ---------------------------------------------------------------

    def login(self) -> None:
        with self._login_lock:
            if isinstance(self.credentials, KerberosCredentials):
                self._login_kerberos(self.credentials)
            else:
                self._login_password(self.credentials)
            self.authenticated = True
            self._generation += 1

    def _login_password(self, creds: PasswordCredentials) -> None:
        try:
            res = self.session.post(
                f"{self.uri_base}/session/login_password",
                data={"user": creds.user, "password": creds.password},
                headers={"Referer": self.uri_base, "Accept": "text/plain"},
                timeout=self.transport.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(str(e)) from e

        if res.status_code != 200:
            if res.status_code == 401:
                err = unauthorized_http_error(res)
                log.warning("FreeIPA password login rejected for %s: %s", creds.user, err)
                raise err
            raise UnexpectedStatus(res.status_code)
        log.info("FreeIPA password login ok: user=%s", creds.user)

    def _login_kerberos(self, creds: KerberosCredentials) -> None:
        auth = kerberos_auth(creds)
        # GSSAPI reads krb5.conf and the client keytab from the environment
        # while the request is being sent.
        with krb5_environment(creds):
            try:
                res = self.session.post(
                    f"{self.uri_base}/session/login_kerberos",
                    headers={"Referer": self.uri_base},
                    auth=auth,
                    timeout=self.transport.timeout,
                )
            except requests.RequestException as e:
                raise KerberosError(f"error logging in using Kerberos: {e}") from e

        if res.status_code != 200:
            raise UnexpectedStatus(res.status_code)
        log.info("FreeIPA Kerberos login ok: principal=%s", creds.principal)

    def _relogin(self, seen_generation: int) -> None:
        with self._login_lock:
            if self._generation != seen_generation:
                # Another thread already logged in after our request went out.
                return
            self.authenticated = False
            try:
                self.login()
            except IPAError as e:
                log.warning("FreeIPA re-login failed: %s", e)
                raise RenewedLoginFailure(e) from e

    # --- API calls -----------------------------------------------------------

    def _send(self, request: Request) -> requests.Response:
        try:
            return self.session.post(
                f"{self.uri_base}/session/json",
                data=request.to_json(),
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "Referer": self.uri_base,
                },
                timeout=self.transport.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(str(e)) from e

    def do(self, request: Request) -> Response:
        """Send ``request`` and decode the answer.

        Raises:
            RenewedLoginFailure: the server said 401 and logging in again failed.
            UnexpectedStatus: non-200 answer (after at most one re-login).
            APIError: the server returned an error envelope.
            DecodeError: the body is not a valid envelope.
            TransportError: the HTTP request itself failed.
        """
        generation = self._generation
        res = self._send(request)

        if res.status_code == 401:
            log.info("FreeIPA session expired on %s, logging in again", request.method)
            self._relogin(generation)
            res = self._send(request)

        if res.status_code != 200:
            raise UnexpectedStatus(res.status_code)

        return parse_response(res.content)

    perform = do

    def call(self, method: str, *args: Any, **options: Any) -> Response:
        """Shortcut: ``client.call("user_show", "admin", all=True)``."""
        return self.do(new_request(method, list(args), dict(options)))


def connect(host: str, transport: Optional[TransportConfig], user: str, password: str) -> IPAClient:
    """Create a client and log in with user/password."""
    client = IPAClient(host, PasswordCredentials(user=user, password=password), transport)
    try:
        client.login()
    except IPAError as e:
        raise LoginError(e) from e
    return client


def _check_readable(path: str, what: str) -> None:
    try:
        with open(path, "rb") as f:
            f.read(1)
    except OSError as e:
        raise KerberosError(f"error reading {what}: {e}") from e


def connect_with_kerberos(host: str, transport: Optional[TransportConfig], options: KerberosCredentials) -> IPAClient:
    """Create a client and log in with a keytab."""
    _check_readable(options.krb5_config, "kerberos configuration")
    _check_readable(options.keytab, "keytab")

    client = IPAClient(host, options, transport)
    try:
        client.login()
    except IPAError as e:
        raise LoginError(e) from e
    return client


def establish(host: str, transport: Optional[TransportConfig], credentials: Credentials) -> IPAClient:
    if isinstance(credentials, KerberosCredentials):
        return connect_with_kerberos(host, transport, credentials)
    if isinstance(credentials, PasswordCredentials):
        return connect(host, transport, credentials.user, credentials.password)
    raise TypeError(f"unsupported credentials: {type(credentials).__name__}")

from __future__ import annotations

import hashlib
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Optional, Union


@dataclass(frozen=True)
class PasswordCredentials:
    user: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class KerberosCredentials:
    """Keytab based login.

    ``krb5_config`` and ``keytab`` are file paths. They are handed to the
    Kerberos library through KRB5_CONFIG / KRB5_CLIENT_KTNAME.
    """

    krb5_config: str
    keytab: str
    user: str
    realm: str

    @property
    def principal(self) -> str:
        u = (self.user or "").strip()
        r = (self.realm or "").strip()
        if "@" in u or not r:
            return u
        return f"{u}@{r}"


Credentials = Union[PasswordCredentials, KerberosCredentials]


def _normalize_pem(pem: str) -> str:
    data = (pem or "").strip()
    # Windows newlines -> \n, иначе хэш файла будет отличаться.
    return data.replace("\r\n", "\n").replace("\r", "\n")


def ensure_ca_file(pem: str) -> str:
    """Materialize CA PEM text into a stable file path and return it.

    requests only accepts a CA bundle path for ``verify``. The file name
    carries a content hash, so several processes reuse the same file.
    """
    data = _normalize_pem(pem)
    if not data:
        return ""

    if "-----BEGIN CERTIFICATE-----" not in data or "-----END CERTIFICATE-----" not in data:
        raise ValueError("CA PEM does not look like a certificate (BEGIN/END CERTIFICATE block expected)")

    h = hashlib.sha256(data.encode("utf-8")).hexdigest()[:16]
    path = os.path.join(tempfile.gettempdir(), f"ipa_client_ca_{h}.pem")

    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            if f.read().strip() == data:
                return path

    # Readers in other processes see either no file or the whole bundle.
    fd, tmp = tempfile.mkstemp(prefix="ipa_client_ca_", suffix=".tmp", dir=os.path.dirname(path))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
            f.write("\n")
        os.chmod(tmp, 0o600)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
    return path


@dataclass
class TransportConfig:
    """HTTP/TLS options applied to the underlying requests.Session.

    verify: True/False or a CA bundle path. ``ca_pem`` (PEM text) takes
    precedence over a bool ``verify`` when set.
    """

    verify: Union[bool, str] = True
    ca_pem: str = ""
    cert: Optional[Union[str, tuple[str, str]]] = None
    timeout: Optional[float] = 30.0
    proxies: dict[str, str] = field(default_factory=dict)

    def resolved_verify(self) -> Union[bool, str]:
        if self.ca_pem and self.verify is not False:
            return ensure_ca_file(self.ca_pem)
        return self.verify

    def apply(self, session: Any) -> None:
        session.verify = self.resolved_verify()
        if self.cert:
            session.cert = self.cert
        if self.proxies:
            session.proxies.update(self.proxies)

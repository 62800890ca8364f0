from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from .log_config import setup_logging
from .models import Credentials, KerberosCredentials, PasswordCredentials, TransportConfig


class EnvSettings(BaseSettings):
    host: str = Field("", alias="IPA_HOST")

    user: str = Field("", alias="IPA_USER")
    password: str = Field("", alias="IPA_PASSWORD")

    # Kerberos: если задан keytab, логинимся через него.
    krb5_config: str = Field("/etc/krb5.conf", alias="IPA_KRB5_CONFIG")
    keytab: str = Field("", alias="IPA_KEYTAB")
    realm: str = Field("", alias="IPA_REALM")

    tls_verify: bool = Field(True, alias="IPA_TLS_VERIFY")
    ca_cert_file: str = Field("", alias="IPA_CA_CERT_FILE")
    timeout_s: float = Field(30.0, alias="IPA_TIMEOUT")

    log_level: str = Field("INFO", alias="IPA_LOG_LEVEL")

    class Config:
        populate_by_name = True

    def credentials(self) -> Credentials:
        if self.keytab:
            return KerberosCredentials(
                krb5_config=self.krb5_config,
                keytab=self.keytab,
                user=self.user,
                realm=self.realm,
            )
        if self.user and self.password:
            return PasswordCredentials(user=self.user, password=self.password)
        raise ValueError("no FreeIPA credentials configured: set IPA_KEYTAB or IPA_USER/IPA_PASSWORD")

    def transport(self) -> TransportConfig:
        verify: bool | str = self.tls_verify
        if self.tls_verify and self.ca_cert_file:
            verify = self.ca_cert_file
        return TransportConfig(verify=verify, timeout=self.timeout_s)


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()


def setup_logging_from_env(env: EnvSettings | None = None) -> None:
    """Configure logging at IPA_LOG_LEVEL."""
    env = env or get_env()
    setup_logging(level=env.log_level)


def client_from_env(env: EnvSettings | None = None, configure_logging: bool = True):
    """Connect using IPA_* environment variables.

    Logging is set up from IPA_LOG_LEVEL first unless ``configure_logging``
    is False (applications that own their logging setup).
    """
    from .client import establish

    env = env or get_env()
    if configure_logging:
        setup_logging_from_env(env)
    if not env.host:
        raise ValueError("IPA_HOST is not set")
    return establish(env.host, env.transport(), env.credentials())

"""FreeIPA JSON-RPC client.

Public API:
    - connect / connect_with_kerberos / establish
    - IPAClient
    - new_request / Request / API_VERSION
    - parse_response / Response
    - error classes from ipa_client.errors
    - client_from_env / setup_logging_from_env (IPA_* environment variables)
"""

from .client import IPAClient, connect, connect_with_kerberos, establish
from .env_settings import client_from_env, setup_logging_from_env
from .errors import (
    APIError,
    DecodeError,
    ErrorCode,
    IPAError,
    KerberosError,
    LoginError,
    RenewedLoginFailure,
    TransportError,
    UnauthorizedRejection,
    UnexpectedStatus,
)
from .models import KerberosCredentials, PasswordCredentials, TransportConfig
from .request import API_VERSION, Request, new_request
from .response import Message, Response, Result, lookup, parse_response

__all__ = [
    "IPAClient",
    "connect",
    "connect_with_kerberos",
    "establish",
    "client_from_env",
    "setup_logging_from_env",
    "APIError",
    "DecodeError",
    "ErrorCode",
    "IPAError",
    "KerberosError",
    "LoginError",
    "RenewedLoginFailure",
    "TransportError",
    "UnauthorizedRejection",
    "UnexpectedStatus",
    "KerberosCredentials",
    "PasswordCredentials",
    "TransportConfig",
    "API_VERSION",
    "Request",
    "new_request",
    "Message",
    "Response",
    "Result",
    "lookup",
    "parse_response",
]

"""Error taxonomy and FreeIPA error codes.

The numeric catalog mirrors ``ipalib/errors.py`` on the server side. It is
reference data: the client never computes codes, it only reads the ones the
server sends back (and maps the login rejection reasons below).
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    PublicError = 900
    VersionError = 901
    UnknownError = 902
    InternalError = 903
    ServerInternalError = 904
    CommandError = 905
    ServerCommandError = 906
    NetworkError = 907
    ServerNetworkError = 908
    JSONError = 909
    XMLRPCMarshallError = 910
    RefererError = 911
    EnvironmentError = 912
    SystemEncodingError = 913
    AuthenticationError = 1000
    KerberosError = 1100
    CCacheError = 1101
    ServiceError = 1102
    NoCCacheError = 1103
    TicketExpired = 1104
    BadCCachePerms = 1105
    BadCCacheFormat = 1106
    CannotResolveKDC = 1107
    SessionError = 1200
    InvalidSessionPassword = 1201
    PasswordExpired = 1202
    KrbPrincipalExpired = 1203
    UserLocked = 1204
    AuthorizationError = 2000
    ACIError = 2100
    InvocationError = 3000
    EncodingError = 3001
    BinaryEncodingError = 3002
    ZeroArgumentError = 3003
    MaxArgumentError = 3004
    OptionError = 3005
    OverlapError = 3006
    RequirementError = 3007
    ConversionError = 3008
    ValidationError = 3009
    NoSuchNamespaceError = 3010
    PasswordMismatch = 3011
    NotImplementedError = 3012
    NotConfiguredError = 3013
    PromptFailed = 3014
    DeprecationError = 3015
    NotAForestRootError = 3016
    ExecutionError = 4000
    NotFound = 4001
    DuplicateEntry = 4002
    HostService = 4003
    MalformedServicePrincipal = 4004
    RealmMismatch = 4005
    RequiresRoot = 4006
    AlreadyPosixGroup = 4007
    MalformedUserPrincipal = 4008
    AlreadyActive = 4009
    AlreadyInactive = 4010
    HasNSAccountLock = 4011
    NotGroupMember = 4012
    RecursiveGroup = 4013
    AlreadyGroupMember = 4014
    Base64DecodeError = 4015
    RemoteRetrieveError = 4016
    SameGroupError = 4017
    DefaultGroupError = 4018
    DNSNotARecordError = 4019
    ManagedGroupError = 4020
    ManagedPolicyError = 4021
    FileError = 4022
    NoCertificateError = 4023
    ManagedGroupExistsError = 4024
    ReverseMemberError = 4025
    AttrValueNotFound = 4026
    SingleMatchExpected = 4027
    AlreadyExternalGroup = 4028
    ExternalGroupViolation = 4029
    PosixGroupViolation = 4030
    EmptyResult = 4031
    InvalidDomainLevelError = 4032
    ServerRemovalError = 4033
    OperationNotSupportedForPrincipalType = 4034
    HTTPRequestError = 4035
    RedundantMappingRule = 4036
    CSRTemplateError = 4037
    AlreadyContainsValueError = 4038
    BuiltinError = 4100
    HelpError = 4101
    LDAPError = 4200
    MidairCollision = 4201
    EmptyModlist = 4202
    DatabaseError = 4203
    LimitsExceeded = 4204
    ObjectclassViolation = 4205
    NotAllowedOnRDN = 4206
    OnlyOneValueAllowed = 4207
    InvalidSyntax = 4208
    BadSearchFilter = 4209
    NotAllowedOnNonLeaf = 4210
    DatabaseTimeout = 4211
    DNSDataMismatch = 4212
    TaskTimeout = 4213
    TimeLimitExceeded = 4214
    SizeLimitExceeded = 4215
    AdminLimitExceeded = 4216
    CertificateError = 4300
    CertificateOperationError = 4301
    CertificateFormatError = 4302
    MutuallyExclusiveError = 4303
    NonFatalError = 4304
    AlreadyRegisteredError = 4305
    NotRegisteredError = 4306
    DependentEntry = 4307
    LastMemberError = 4308
    ProtectedEntryError = 4309
    CertificateInvalidError = 4310
    SchemaUpToDate = 4311
    DNSError = 4400
    DNSResolverError = 4401
    TrustError = 4500
    TrustTopologyConflictError = 4501
    GenericError = 5000


REJECTION_REASON_HEADER = "X-Ipa-Rejection-Reason"

# Значения заголовка X-Ipa-Rejection-Reason -> код ошибки.
REJECTION_REASONS: dict[str, ErrorCode] = {
    "password-expired": ErrorCode.PasswordExpired,
    "invalid-password": ErrorCode.InvalidSessionPassword,
    "krbprincipal-expired": ErrorCode.KrbPrincipalExpired,
    "user-locked": ErrorCode.UserLocked,
}


def error_name(code: int) -> str:
    """Catalog name for a numeric code, "" if the code is not catalogued."""
    try:
        return ErrorCode(code).name
    except ValueError:
        return ""


class IPAError(Exception):
    """Base class for everything this package raises."""


class TransportError(IPAError):
    """The HTTP request itself failed (connection, TLS, timeout)."""


class UnexpectedStatus(IPAError):
    def __init__(self, status_code: int) -> None:
        self.status_code = int(status_code)
        super().__init__(f"unexpected http status code: {self.status_code}")


class UnauthorizedRejection(IPAError):
    """401 on login, narrowed by the server's rejection reason header."""

    def __init__(self, reason: str, code: int) -> None:
        self.reason = reason
        self.code = int(code)
        super().__init__(f"unauthorized response <{reason}> ({self.code})")


class APIError(IPAError):
    """The server answered with an error envelope."""

    def __init__(self, name: str, code: int, message: str) -> None:
        self.name = name
        self.code = code
        self.message = message
        super().__init__(f"{name} ({code}): {message}")

    @property
    def known(self) -> bool:
        return bool(error_name(self.code))


class DecodeError(IPAError):
    """Response body is not valid JSON or not a JSON-RPC envelope."""


class KerberosError(IPAError):
    pass


class LoginError(IPAError):
    """Initial login failed; the cause is chained via ``__cause__``."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"login failed: {cause}")


class RenewedLoginFailure(IPAError):
    """The automatic re-login after a 401 failed."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"renewed login failed: {cause}")


def unauthorized_http_error(response: Any) -> UnauthorizedRejection:
    """Build the rejection error from a 401 login response.

    ``response.headers`` is expected to be case-insensitive (requests'
    CaseInsensitiveDict); the server sends ``X-IPA-Rejection-Reason``.
    """
    # Values padded by a reverse proxy still map to their code.
    reason = (response.headers.get(REJECTION_REASON_HEADER) or "").strip()
    code = REJECTION_REASONS.get(reason, ErrorCode.GenericError)
    return UnauthorizedRejection(reason, code)

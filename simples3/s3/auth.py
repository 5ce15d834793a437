# pylint: disable=C0116
#
#   Copyright 2024 getcarrier.io
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""
Request authentication for the S3-compatible API

Four credential schemes are accepted, tried in this order:

1. x-amz-access-key / x-amz-secret-key header pair
2. Authorization: [Bearer ]ACCESS:SECRET
3. Authorization: AWS4-HMAC-SHA256 ... (AWS Signature Version 4)
4. ?access_key=ACCESS&secret_key=SECRET query parameters

Each scheme has a parser that returns an attempt (or None when the scheme is
not present in the request) and a verifier for that attempt. The first scheme
that parses decides the result; later schemes are not consulted.
"""

import hmac
import hashlib
import logging
from functools import wraps
from typing import Dict, List, Mapping, NamedTuple, Optional, Union
from urllib.parse import urlsplit

import flask

log = logging.getLogger(__name__)

ALGORITHM = 'AWS4-HMAC-SHA256'
TERMINATOR = 'aws4_request'
UNSIGNED_PAYLOAD = 'UNSIGNED-PAYLOAD'

ACCESS_KEY_HEADER = 'x-amz-access-key'
SECRET_KEY_HEADER = 'x-amz-secret-key'
BEARER_PREFIX = 'Bearer '


class S3Credentials(NamedTuple):
    """Configured credentials, immutable for the process lifetime"""
    access_key: str
    secret_key: str
    bucket_name: str


class AuthRequest(NamedTuple):
    """Request data the verifier needs; header names are lowercased"""
    method: str
    path: str
    query: str
    headers: Mapping[str, str]


class SigV4Components(NamedTuple):
    """Parsed AWS Signature V4 components"""
    access_key: str
    date: str
    region: str
    service: str
    signed_headers: List[str]
    signature: str


class HeaderKeysAttempt(NamedTuple):
    access_key: str
    secret_key: str


class SimpleKeysAttempt(NamedTuple):
    access_key: str
    secret_key: str


class SigV4Attempt(NamedTuple):
    authorization: str


class QueryKeysAttempt(NamedTuple):
    access_keys: List[str]
    secret_keys: List[str]


AuthAttempt = Union[HeaderKeysAttempt, SimpleKeysAttempt, SigV4Attempt, QueryKeysAttempt]


def sign(key: bytes, msg: str) -> bytes:
    """HMAC-SHA256 signing helper"""
    return hmac.new(key, msg.encode('utf-8'), hashlib.sha256).digest()


def get_signature_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    """
    Derive the signing key for AWS Signature Version 4.

    The signing key is derived from the secret access key through a series of
    HMAC-SHA256 operations: kSecret -> kDate -> kRegion -> kService -> kSigning
    """
    k_date = sign(('AWS4' + secret_key).encode('utf-8'), date_stamp)
    k_region = sign(k_date, region)
    k_service = sign(k_region, service)
    k_signing = sign(k_service, TERMINATOR)
    return k_signing


#
# Scheme parsers
#


def parse_header_keys(auth_request: AuthRequest) -> Optional[HeaderKeysAttempt]:
    access_key = auth_request.headers.get(ACCESS_KEY_HEADER)
    secret_key = auth_request.headers.get(SECRET_KEY_HEADER)
    if access_key is None or secret_key is None:
        return None
    return HeaderKeysAttempt(access_key=access_key, secret_key=secret_key)


def parse_simple_keys(auth_request: AuthRequest) -> Optional[SimpleKeysAttempt]:
    """Parse 'Authorization: [Bearer ]ACCESS:SECRET'"""
    auth_header = auth_request.headers.get('authorization')
    if auth_header is None:
        return None

    if auth_header.startswith(BEARER_PREFIX):
        auth_header = auth_header[len(BEARER_PREFIX):]

    if auth_header.count(':') != 1:
        return None
    access_key, secret_key = auth_header.split(':')
    if not access_key or not secret_key:
        return None

    return SimpleKeysAttempt(access_key=access_key, secret_key=secret_key)


def parse_sigv4(auth_request: AuthRequest) -> Optional[SigV4Attempt]:
    auth_header = auth_request.headers.get('authorization')
    if auth_header is None or not auth_header.startswith(ALGORITHM):
        return None
    return SigV4Attempt(authorization=auth_header)


def parse_query_keys(auth_request: AuthRequest) -> Optional[QueryKeysAttempt]:
    """Collect raw access_key/secret_key pairs from the query string"""
    if not auth_request.query:
        return None

    access_keys = []
    secret_keys = []
    for param in auth_request.query.split('&'):
        if '=' not in param:
            continue
        key, value = param.split('=', 1)
        if key == 'access_key':
            access_keys.append(value)
        elif key == 'secret_key':
            secret_keys.append(value)

    if not access_keys or not secret_keys:
        return None
    return QueryKeysAttempt(access_keys=access_keys, secret_keys=secret_keys)


SCHEME_PARSERS = (
    parse_header_keys,
    parse_simple_keys,
    parse_sigv4,
    parse_query_keys,
)


def parse_auth_attempt(auth_request: AuthRequest) -> Optional[AuthAttempt]:
    """Return the first credential scheme present in the request"""
    for parser in SCHEME_PARSERS:
        attempt = parser(auth_request)
        if attempt is not None:
            return attempt
    return None


#
# SigV4
#


def parse_authorization_header(auth_header: str) -> Optional[SigV4Components]:
    """
    Parse AWS Signature V4 Authorization header.

    Format: AWS4-HMAC-SHA256 Credential=ACCESS_KEY/DATE/REGION/SERVICE/aws4_request,
            SignedHeaders=host;x-amz-content-sha256;x-amz-date,
            Signature=SIGNATURE

    Directives are separated by ', ' exactly, as written by AWS SDKs.
    """
    prefix = ALGORITHM + ' '
    parts = auth_header[len(prefix):] if auth_header.startswith(prefix) else ''

    credential = ''
    signed_headers = ''
    signature = ''
    for part in parts.split(', '):
        if part.startswith('Credential='):
            credential = part[len('Credential='):]
        elif part.startswith('SignedHeaders='):
            signed_headers = part[len('SignedHeaders='):]
        elif part.startswith('Signature='):
            signature = part[len('Signature='):]

    cred_parts = credential.split('/')
    if len(cred_parts) != 5:
        log.warning("Invalid credential format in V4 auth")
        return None

    access_key, date, region, service, _ = cred_parts

    return SigV4Components(
        access_key=access_key,
        date=date,
        region=region,
        service=service,
        signed_headers=signed_headers.split(';'),
        signature=signature
    )


def get_canonical_headers(signed_headers: List[str], headers: Mapping[str, str]) -> str:
    """
    Get canonical headers.

    - Sort by header name
    - Trim surrounding whitespace from values
    - Skip signed headers missing from the request
    """
    canonical = []
    for header_name in sorted(signed_headers):
        value = headers.get(header_name)
        if value is None:
            continue
        canonical.append(f"{header_name}:{value.strip()}\n")
    return ''.join(canonical)


def create_canonical_request(auth_request: AuthRequest, signed_headers: List[str]) -> str:
    """
    Create the canonical request string.

    Format:
    HTTPMethod\n
    Path\n
    QueryString\n
    CanonicalHeaders\n
    SignedHeaders\n
    x-amz-content-sha256

    Path and query string are used exactly as received.
    """
    payload_hash = auth_request.headers.get('x-amz-content-sha256', UNSIGNED_PAYLOAD)

    return '\n'.join([
        auth_request.method,
        auth_request.path,
        auth_request.query,
        get_canonical_headers(signed_headers, auth_request.headers),
        ';'.join(signed_headers),
        payload_hash
    ])


def create_string_to_sign(canonical_request: str, amz_date: str,
                          date_stamp: str, region: str, service: str) -> str:
    """
    Create the string to sign.

    Format:
    Algorithm\n
    RequestDateTime\n
    CredentialScope\n
    HashedCanonicalRequest
    """
    credential_scope = f"{date_stamp}/{region}/{service}/{TERMINATOR}"
    hashed_canonical = hashlib.sha256(canonical_request.encode('utf-8')).hexdigest()

    return '\n'.join([
        ALGORITHM,
        amz_date,
        credential_scope,
        hashed_canonical
    ])


def calculate_signature(string_to_sign: str, secret_key: str,
                        date_stamp: str, region: str, service: str) -> str:
    """Calculate the AWS Signature V4 signature"""
    signing_key = get_signature_key(secret_key, date_stamp, region, service)
    return hmac.new(signing_key, string_to_sign.encode('utf-8'), hashlib.sha256).hexdigest()


def verify_signature(auth_request: AuthRequest, authorization: str,
                     credentials: S3Credentials) -> bool:
    """
    Verify the AWS Signature V4 signature.

    Returns True if the signature is valid, False otherwise.
    """
    sig_components = parse_authorization_header(authorization)
    if sig_components is None:
        return False

    if sig_components.access_key != credentials.access_key:
        log.warning("Mismatched access key in V4 auth")
        return False

    amz_date = auth_request.headers.get('x-amz-date', '')

    canonical_request = create_canonical_request(auth_request, sig_components.signed_headers)
    string_to_sign = create_string_to_sign(
        canonical_request, amz_date, sig_components.date,
        sig_components.region, sig_components.service
    )
    expected_signature = calculate_signature(
        string_to_sign, credentials.secret_key,
        sig_components.date, sig_components.region, sig_components.service
    )

    log.debug("Provided signature:   %s", sig_components.signature)
    log.debug("Calculated signature: %s", expected_signature)

    return hmac.compare_digest(
        expected_signature.encode('utf-8'),
        sig_components.signature.encode('utf-8')
    )


#
# Verification
#


def verify_attempt(auth_request: AuthRequest, attempt: AuthAttempt,
                   credentials: S3Credentials) -> bool:
    if isinstance(attempt, HeaderKeysAttempt):
        log.info("Using custom headers auth")
        return (attempt.access_key == credentials.access_key
                and attempt.secret_key == credentials.secret_key)

    if isinstance(attempt, SimpleKeysAttempt):
        log.info("Using simple auth header")
        return (attempt.access_key == credentials.access_key
                and attempt.secret_key == credentials.secret_key)

    if isinstance(attempt, SigV4Attempt):
        log.info("Verifying AWS v4 signature")
        return verify_signature(auth_request, attempt.authorization, credentials)

    if isinstance(attempt, QueryKeysAttempt):
        log.info("Using query param auth")
        return (credentials.access_key in attempt.access_keys
                and credentials.secret_key in attempt.secret_keys)

    return False


def verify_auth(auth_request: AuthRequest, credentials: S3Credentials) -> bool:
    """
    Decide whether a request is authorized.

    Never raises: malformed input of an attempted scheme is a failure.
    """
    try:
        attempt = parse_auth_attempt(auth_request)
        if attempt is None:
            log.warning("No valid authentication found")
            return False
        return verify_attempt(auth_request, attempt, credentials)
    except Exception as e:  # pylint: disable=W0703
        log.warning("Authentication check failed: %s", e)
        return False


#
# Flask glue
#


def _raw_path(flask_request) -> str:
    """Path as sent on the wire, before percent-decoding"""
    raw_uri = flask_request.environ.get('RAW_URI') or flask_request.environ.get('REQUEST_URI')
    if raw_uri:
        path = urlsplit(raw_uri).path
        if path:
            return path
    return flask_request.path


def build_auth_request(flask_request) -> AuthRequest:
    headers: Dict[str, str] = {}
    for name, value in flask_request.headers.items():
        headers.setdefault(name.lower(), value)

    return AuthRequest(
        method=flask_request.method,
        path=_raw_path(flask_request),
        query=flask_request.query_string.decode('latin-1'),
        headers=headers,
    )


def verify_s3_auth(flask_request, credentials: S3Credentials) -> bool:
    """Non-decorator version for use in route handlers"""
    return verify_auth(build_auth_request(flask_request), credentials)


def s3_auth_required(f):
    """
    Decorator to require S3 authentication for a route.

    Credentials are taken from the application context created by
    simples3.module.create_app. Returns 401 AccessDenied on failure.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from .responses import error_response

        credentials = flask.current_app.extensions['simples3'].credentials

        if not verify_s3_auth(flask.request, credentials):
            log.warning("Unauthorized request: %s %s", flask.request.method, flask.request.path)
            return error_response(
                code='AccessDenied',
                message='Access Denied',
                status_code=401
            )

        return f(*args, **kwargs)

    return decorated_function

"""Pytest fixtures for the SimpleS3 gateway tests."""

import hashlib
import hmac

import pytest

from simples3 import create_app
from simples3.models.pd.configuration import S3ServerConfig
from simples3.s3.auth import S3Credentials
from simples3.s3.storage import LocalObjectStore

ACCESS_KEY = "mykey"
SECRET_KEY = "mysecret"
BUCKET = "simple-bucket"


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def sigv4_authorization(method, path, query, headers, signed_headers,
                        access_key=ACCESS_KEY, secret_key=SECRET_KEY,
                        date="20240101", region="us-east-1", service="s3"):
    """Compute an Authorization header value the way a SigV4 client would.

    ``headers`` must use lowercase names.
    """
    canonical_headers = "".join(
        f"{name}:{headers[name].strip()}\n"
        for name in sorted(signed_headers)
        if name in headers
    )
    canonical_request = "\n".join([
        method,
        path,
        query,
        canonical_headers,
        ";".join(signed_headers),
        headers.get("x-amz-content-sha256", "UNSIGNED-PAYLOAD"),
    ])
    scope = f"{date}/{region}/{service}/aws4_request"
    string_to_sign = "\n".join([
        "AWS4-HMAC-SHA256",
        headers.get("x-amz-date", ""),
        scope,
        hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
    ])

    key = _hmac(("AWS4" + secret_key).encode("utf-8"), date)
    key = _hmac(key, region)
    key = _hmac(key, service)
    key = _hmac(key, "aws4_request")
    signature = hmac.new(key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

    return (
        f"AWS4-HMAC-SHA256 Credential={access_key}/{scope}, "
        f"SignedHeaders={';'.join(signed_headers)}, Signature={signature}"
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host environment variables out of the settings model."""
    for name in ("HOST", "PORT", "BUCKET", "ACCESS_KEY", "SECRET_KEY", "DATA_DIR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def credentials() -> S3Credentials:
    return S3Credentials(access_key=ACCESS_KEY, secret_key=SECRET_KEY, bucket_name=BUCKET)


@pytest.fixture
def data_dir(tmp_path):
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def storage(data_dir) -> LocalObjectStore:
    return LocalObjectStore(data_dir)


@pytest.fixture
def config(data_dir) -> S3ServerConfig:
    return S3ServerConfig(
        bucket=BUCKET,
        access_key=ACCESS_KEY,
        secret_key=SECRET_KEY,
        data_dir=data_dir,
    )


@pytest.fixture
def app(config):
    flask_app = create_app(config)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers() -> dict:
    """Header-pair credentials accepted by every route."""
    return {"x-amz-access-key": ACCESS_KEY, "x-amz-secret-key": SECRET_KEY}


@pytest.fixture
def sign_v4():
    """SigV4 Authorization builder, see sigv4_authorization."""
    return sigv4_authorization

"""Shared pytest fixtures for portico tests."""

import json
import os
import time

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm
from moto import mock_aws


class FakeClock:
    """Manually advanced clock for key cache tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class JwksFetcher:
    """Serves a swappable JWKS document and counts fetches."""

    def __init__(self, document: dict):
        self.document = document
        self.error = None
        self.delay = 0.0
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.document


def _jwk(private_key, kid: str) -> dict:
    jwk = json.loads(RSAAlgorithm.to_jwk(private_key.public_key()))
    jwk.update({"kid": kid, "alg": "RS256", "use": "sig"})
    return jwk


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for testing."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def mock_cognito(aws_credentials):
    """Mock Cognito service."""
    with mock_aws():
        yield


@pytest.fixture
def region():
    """AWS region for tests."""
    return "us-east-1"


# ==================== Signing Keys ====================


@pytest.fixture(scope="session")
def private_key():
    """RSA key published as kid "key-1"."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rotated_private_key():
    """RSA key published as kid "key-2" after a rotation."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def make_jwk():
    """Build the public JWK for a private key."""
    return _jwk


@pytest.fixture
def jwks(private_key):
    """JWKS document containing only key-1."""
    return {"keys": [_jwk(private_key, "key-1")]}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetcher(jwks):
    return JwksFetcher(jwks)


@pytest.fixture
def issue_token(private_key):
    """Sign claims into a JWT; defaults to RS256 with key-1."""

    def _issue(claims: dict, kid="key-1", key=None, algorithm="RS256", headers=None):
        token_headers = dict(headers or {})
        if kid is not None:
            token_headers["kid"] = kid
        signing_key = private_key if key is None and algorithm == "RS256" else key
        return jwt.encode(claims, signing_key, algorithm=algorithm, headers=token_headers)

    return _issue

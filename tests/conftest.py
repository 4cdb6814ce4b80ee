"""Shared fakes for the bot tests: an in-memory RTM connection, a dialer that
hands it out, an rtm.connect mock and throwaway certificates."""

import asyncio
import datetime
import json
from typing import Any, Optional, Union

import httpx
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID
from websockets.exceptions import ConnectionClosedOK

CONNECT_OK = {
    "ok": True,
    "url": "wss://example/session",
    "team": {"id": "T1", "name": "Team", "domain": "team"},
    "self": {"id": "U1", "name": "bot"},
}


class FakeConnection:
    def __init__(self) -> None:
        self.sent: list[str] = []
        self.close_calls = 0
        self.closed = False
        self._inbox: asyncio.Queue[Union[str, BaseException]] = asyncio.Queue()

    def feed(self, frame: Union[str, dict[str, Any]]) -> None:
        self._inbox.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def fail(self, exc: BaseException) -> None:
        self._inbox.put_nowait(exc)

    async def recv(self) -> str:
        item = await self._inbox.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def send(self, frame: str) -> None:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        self.sent.append(frame)

    async def close(self) -> None:
        self.close_calls += 1
        # yield so that concurrent disconnects overlap
        await asyncio.sleep(0)
        self.closed = True
        self._inbox.put_nowait(ConnectionClosedOK(None, None))

    def frames(self, frame_type: Optional[str] = None) -> list[dict[str, Any]]:
        parsed = [json.loads(f) for f in self.sent]
        return [f for f in parsed if frame_type is None or f["type"] == frame_type]


class FakeDialer:
    def __init__(self, connection: FakeConnection) -> None:
        self.connection = connection
        self.urls: list[str] = []

    async def dial(self, url: str) -> FakeConnection:
        self.urls.append(url)
        return self.connection


def rtm_connect_transport(
    body: Any = None, status: int = 200, requests: Optional[list[httpx.Request]] = None,
) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if isinstance(body, (bytes, str)):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=CONNECT_OK if body is None else body)

    return httpx.MockTransport(handler)


@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def dialer(connection: FakeConnection) -> FakeDialer:
    return FakeDialer(connection)


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def make_ca(common_name: str = "Test Root CA") -> tuple[x509.Certificate, ec.EllipticCurvePrivateKey]:
    key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(_name(common_name))
        .issuer_name(_name(common_name))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=False,
                data_encipherment=False, key_agreement=False, key_cert_sign=True,
                crl_sign=True, encipher_only=False, decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        .sign(key, hashes.SHA256())
    )
    return cert, key


def make_leaf(
    ca: tuple[x509.Certificate, ec.EllipticCurvePrivateKey], hostname: str,
) -> tuple[x509.Certificate, ec.EllipticCurvePrivateKey]:
    ca_cert, ca_key = ca
    key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(_name(hostname))
        .issuer_name(ca_cert.subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.SubjectAlternativeName([x509.DNSName(hostname)]), critical=False)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=False,
                data_encipherment=False, key_agreement=False, key_cert_sign=False,
                crl_sign=False, encipher_only=False, decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()), critical=False,
        )
        .sign(ca_key, hashes.SHA256())
    )
    return cert, key

"""
WebSocket dialer for the RTM session URL.

Rather than connecting to the host named in the session URL, we resolve it
and dial the numeric address. No hostname then appears in the TLS
ClientHello (no SNI) or the Host header, so intermediaries that filter on
either cannot single the connection out. This only works because the server
does not rely on SNI.

With the hostname gone the ssl module has nothing to check the certificate
against, so its verification is turned off and replaced by our own: the leaf
certificate must chain to a trust anchor and name the host we threw away.
Slack's leaf certificates are signed directly by the CA, so no intermediates
are considered.
"""

import asyncio
import ipaddress
import logging
import socket
import ssl
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union
from urllib.parse import urlsplit, urlunsplit

import certifi
from cryptography import x509
from cryptography.x509.verification import PolicyBuilder, Store, VerificationError
from websockets.asyncio.client import ClientConnection, connect

from slackbot.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = "https://api.slack.com/"
DEFAULT_OPEN_TIMEOUT_S = 10.0

Resolver = Callable[[str, int], Awaitable[list[str]]]


async def resolve_host(host: str, port: int) -> list[str]:
    """Resolve ``host`` to numeric addresses, in resolver order."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise TransportError(f"could not resolve address of {host}: {e}") from e
    addresses: list[str] = []
    for _family, _type, _proto, _canon, sockaddr in infos:
        if sockaddr[0] not in addresses:
            addresses.append(sockaddr[0])
    return addresses


def split_host(url: str) -> tuple[str, int]:
    """Return the hostname and port of a ws:// or wss:// URL."""
    parts = urlsplit(url)
    if parts.scheme not in ("ws", "wss"):
        raise TransportError(f"not a websocket URL: {url}")
    if not parts.hostname:
        raise TransportError(f"could not extract host from {url}")
    try:
        port = parts.port
    except ValueError as e:
        raise TransportError(f"invalid port in {url}") from e
    if port is None:
        port = 443 if parts.scheme == "wss" else 80
    return parts.hostname, port


def replace_host(url: str, address: str) -> str:
    """Swap the hostname in ``url`` for a numeric address, keeping the port."""
    parts = urlsplit(url)
    host = f"[{address}]" if ":" in address else address
    netloc = host if parts.port is None else f"{host}:{parts.port}"
    return urlunsplit(parts._replace(netloc=netloc))


def load_trust_store(path: Union[str, Path, None] = None) -> Store:
    pem = Path(path or certifi.where()).read_bytes()
    return Store(x509.load_pem_x509_certificates(pem))


def verify_leaf(der: Optional[bytes], hostname: str, store: Store) -> None:
    """Require the leaf certificate to chain to ``store`` and name ``hostname``."""
    if not der:
        raise TransportError(f"{hostname} presented no certificate")
    try:
        leaf = x509.load_der_x509_certificate(der)
    except ValueError as e:
        raise TransportError(f"could not parse certificate for {hostname}: {e}") from e

    subject: x509.GeneralName
    try:
        subject = x509.IPAddress(ipaddress.ip_address(hostname))
    except ValueError:
        subject = x509.DNSName(hostname)

    verifier = PolicyBuilder().store(store).build_server_verifier(subject)
    try:
        verifier.verify(leaf, [])
    except VerificationError as e:
        raise TransportError(f"certificate rejected for {hostname}: {e}") from e


def _verifying_connection(hostname: str, store: Store) -> type[ClientConnection]:
    # The check runs after the TLS handshake and before the HTTP upgrade, so
    # nothing, the session ticket in the path included, reaches an unverified peer.
    class VerifyingClientConnection(ClientConnection):
        async def handshake(self, *args: Any, **kwargs: Any) -> None:
            ssl_object = self.transport.get_extra_info("ssl_object")
            if ssl_object is None:
                raise TransportError(f"no TLS session with {hostname}")
            verify_leaf(ssl_object.getpeercert(binary_form=True), hostname, store)
            await super().handshake(*args, **kwargs)

    return VerifyingClientConnection


def _unverified_ssl_context() -> ssl.SSLContext:
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


class Dialer:
    def __init__(
        self,
        *,
        origin: str = DEFAULT_ORIGIN,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT_S,
        trust_store: Optional[Store] = None,
        resolver: Resolver = resolve_host,
        logger: logging.Logger = logger,
    ):
        self._origin = origin
        self._open_timeout = open_timeout
        self._trust_store = trust_store
        self._resolver = resolver
        self._logger = logger

    @property
    def trust_store(self) -> Store:
        if self._trust_store is None:
            self._trust_store = load_trust_store()
        return self._trust_store

    async def dial(self, url: str) -> ClientConnection:
        """Open the RTM connection at ``url`` via its numeric address.

        Every failure is a TransportError. There is no fallback to dialing
        by hostname.
        """
        host, port = split_host(url)
        addresses = await self._resolver(host, port)
        if not addresses:
            raise TransportError(f"could not resolve address of {host}: no candidates")
        target = replace_host(url, addresses[0])
        self._logger.info("Connecting to WebSocket at %s (%s)", url, addresses[0])

        kwargs: dict[str, Any] = {
            "origin": self._origin,
            "open_timeout": self._open_timeout,
            # RTM has its own heartbeat; protocol-level pings are not used.
            "ping_interval": None,
            # A proxy would see the hostname again.
            "proxy": None,
        }
        if urlsplit(url).scheme == "wss":
            kwargs["ssl"] = _unverified_ssl_context()
            kwargs["server_hostname"] = ""
            kwargs["create_connection"] = _verifying_connection(host, self.trust_store)

        try:
            return await connect(target, **kwargs)
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"could not connect to {url}: {e}") from e

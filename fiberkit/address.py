"""Network addresses: IPv4 addresses, opaque addresses of other families, and lookups."""

from __future__ import annotations

import abc
import functools
import ipaddress
import logging
import socket
import struct
from typing import Optional

import psutil

__all__ = [
    "Address",
    "IPAddress",
    "IPv4Address",
    "UnknownAddress",
    "create_address",
    "create_ip_address",
    "lookup",
    "lookup_any",
    "lookup_any_ip_address",
    "interface_addresses",
    "iface_addresses",
]

_log = logging.getLogger(__name__)

_MASK32 = 0xFFFFFFFF
_SA_DATA_LEN = 14


def _host_mask(prefix_len: int) -> int:
    """Mask covering the host bits of a 32-bit address with ``prefix_len`` network bits."""
    if not 0 <= prefix_len <= 32:
        raise ValueError(f"prefix length out of range: {prefix_len}")
    return ((1 << (32 - prefix_len)) - 1) & _MASK32


@functools.total_ordering
class Address(abc.ABC):
    """Base of all network addresses.

    Addresses compare by their raw socket-address bytes, then by length.
    """

    @property
    @abc.abstractmethod
    def family(self) -> int:
        """Address family, e.g. ``socket.AF_INET``."""

    @property
    @abc.abstractmethod
    def sockaddr(self) -> bytes:
        """The address in socket-address layout."""

    @abc.abstractmethod
    def to_string(self) -> str:
        """Readable form of the address."""

    def __str__(self) -> str:
        return self.to_string()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self.sockaddr == other.sockaddr

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        mine, theirs = self.sockaddr, other.sockaddr
        shortest = min(len(mine), len(theirs))
        if mine[:shortest] != theirs[:shortest]:
            return mine[:shortest] < theirs[:shortest]
        return len(mine) < len(theirs)

    def __hash__(self) -> int:
        return hash(self.sockaddr)


class IPAddress(Address):
    """An address that has a port and belongs to a subnet."""

    @property
    @abc.abstractmethod
    def port(self) -> int:
        """Port number."""

    @port.setter
    @abc.abstractmethod
    def port(self, value: int) -> None:
        """Set the port number."""

    @abc.abstractmethod
    def broadcast_address(self, prefix_len: int) -> IPAddress:
        """Broadcast address of the subnet with ``prefix_len`` network bits."""

    @abc.abstractmethod
    def network_address(self, prefix_len: int) -> IPAddress:
        """Network address of the subnet with ``prefix_len`` network bits."""

    @abc.abstractmethod
    def subnet_mask(self, prefix_len: int) -> IPAddress:
        """Subnet mask with ``prefix_len`` network bits."""


class IPv4Address(IPAddress):
    """An IPv4 address and port; ``address`` is the 32-bit value in host order."""

    def __init__(self, address: int = 0, port: int = 0) -> None:
        if not 0 <= address <= _MASK32:
            raise ValueError(f"IPv4 address out of range: {address}")
        self._address = address
        self._port = 0
        self.port = port

    @classmethod
    def create(cls, address: str, port: int = 0) -> IPv4Address:
        """Build an address from dotted-decimal text such as ``192.168.1.1``."""
        try:
            packed = socket.inet_pton(socket.AF_INET, address)
        except (OSError, TypeError, ValueError) as exc:
            _log.debug("IPv4Address.create(%r, %r) failed: %s", address, port, exc)
            raise ValueError(f"invalid IPv4 address: {address!r}") from exc
        return cls(int.from_bytes(packed, "big"), port)

    @property
    def family(self) -> int:
        return socket.AF_INET

    @property
    def address(self) -> int:
        return self._address

    @property
    def port(self) -> int:
        return self._port

    @port.setter
    def port(self, value: int) -> None:
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"port out of range: {value}")
        self._port = value

    @property
    def sockaddr(self) -> bytes:
        return (
            struct.pack("=H", socket.AF_INET)
            + self._port.to_bytes(2, "big")
            + self._address.to_bytes(4, "big")
            + bytes(8)
        )

    def to_string(self) -> str:
        return f"{socket.inet_ntoa(self._address.to_bytes(4, 'big'))}:{self._port}"

    def __repr__(self) -> str:
        return f"IPv4Address({self.to_string()!r})"

    def broadcast_address(self, prefix_len: int) -> IPv4Address:
        return IPv4Address(self._address | _host_mask(prefix_len), self._port)

    def network_address(self, prefix_len: int) -> IPv4Address:
        return IPv4Address(self._address & ~_host_mask(prefix_len) & _MASK32, self._port)

    def subnet_mask(self, prefix_len: int) -> IPv4Address:
        return IPv4Address(~_host_mask(prefix_len) & _MASK32, 0)


class UnknownAddress(Address):
    """An address of a family this module does not interpret."""

    def __init__(self, family: int, data: bytes = b"") -> None:
        data = bytes(data)
        if len(data) > _SA_DATA_LEN:
            raise ValueError(f"address data longer than {_SA_DATA_LEN} bytes")
        self._family = int(family)
        self._data = data.ljust(_SA_DATA_LEN, b"\0")

    @property
    def family(self) -> int:
        return self._family

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def sockaddr(self) -> bytes:
        return struct.pack("=H", self._family & 0xFFFF) + self._data

    def to_string(self) -> str:
        return f"[UnknownAddress family={self._family}]"

    def __repr__(self) -> str:
        return f"UnknownAddress(family={self._family})"


def create_address(family: int, sockaddr: object) -> Optional[Address]:
    """Build an address from a family and a socket-module address value.

    IPv4 values are ``(host, port)`` tuples; any other family yields an
    :class:`UnknownAddress`, carrying ``sockaddr`` as data when it is bytes.
    """
    if sockaddr is None:
        return None
    if family == socket.AF_INET:
        host, port = sockaddr[0], sockaddr[1]
        return IPv4Address.create(host, port)
    if isinstance(sockaddr, (bytes, bytearray)):
        return UnknownAddress(family, bytes(sockaddr)[:_SA_DATA_LEN])
    return UnknownAddress(family)


def create_ip_address(address: str, port: int = 0) -> Optional[IPAddress]:
    """Build an IP address from numeric text; ``None`` if its family is not an IP one handled here."""
    try:
        infos = socket.getaddrinfo(address, None, socket.AF_UNSPEC, 0, 0, socket.AI_NUMERICHOST)
    except (socket.gaierror, UnicodeError) as exc:
        _log.debug("create_ip_address(%r, %r) failed: %s", address, port, exc)
        raise ValueError(f"invalid IP address: {address!r}") from exc
    if not infos:
        raise ValueError(f"invalid IP address: {address!r}")
    family, _, _, _, sockaddr = infos[0]
    result = create_address(family, sockaddr)
    if isinstance(result, IPAddress):
        result.port = port
        return result
    return None


def _split_host(host: str) -> tuple[str, Optional[str]]:
    """Split ``host`` into node and service: ``[v6]:port``, ``name:port`` or bare ``name``."""
    node = ""
    service: Optional[str] = None
    if host.startswith("["):
        end = host.find("]", 1)
        if end != -1:
            if host[end + 1:end + 2] == ":":
                service = host[end + 2:]
            node = host[1:end]
    if not node:
        colon = host.find(":")
        if colon != -1 and host.find(":", colon + 1) == -1:
            node = host[:colon]
            service = host[colon + 1:]
    if not node:
        node = host
    return node, service


def lookup(
    host: str,
    family: int = socket.AF_INET,
    type: int = 0,
    protocol: int = 0,
) -> list[Address]:
    """Resolve ``host`` (optionally ``host:port`` or ``[v6]:port``) into all matching addresses.

    An empty list means the name could not be resolved.
    """
    node, service = _split_host(host)
    try:
        infos = socket.getaddrinfo(node, service, family, type, protocol)
    except (socket.gaierror, UnicodeError) as exc:
        _log.debug("lookup(%r, %r, %r) failed: %s", host, family, type, exc)
        return []
    results = []
    for fam, _, _, _, sockaddr in infos:
        address = create_address(fam, sockaddr)
        if address is not None:
            results.append(address)
    return results


def lookup_any(
    host: str,
    family: int = socket.AF_INET,
    type: int = 0,
    protocol: int = 0,
) -> Optional[Address]:
    """First address ``host`` resolves to, or ``None``."""
    results = lookup(host, family, type, protocol)
    return results[0] if results else None


def lookup_any_ip_address(
    host: str,
    family: int = socket.AF_INET,
    type: int = 0,
    protocol: int = 0,
) -> Optional[IPAddress]:
    """First IP address ``host`` resolves to, or ``None``."""
    return next((a for a in lookup(host, family, type, protocol) if isinstance(a, IPAddress)), None)


def _count_bits(packed: bytes) -> int:
    return sum(bin(byte).count("1") for byte in packed)


def interface_addresses(family: int = socket.AF_INET) -> dict[str, list[tuple[Address, int]]]:
    """Map each local interface name to its ``(address, prefix length)`` pairs."""
    result: dict[str, list[tuple[Address, int]]] = {}
    for name, entries in psutil.net_if_addrs().items():
        for entry in entries:
            entry_family = int(entry.family)
            if family != socket.AF_UNSPEC and family != entry_family:
                continue
            if entry_family == socket.AF_INET:
                address: Address = IPv4Address.create(entry.address)
                prefix = _count_bits(socket.inet_aton(entry.netmask)) if entry.netmask else 0
            elif entry_family == socket.AF_INET6:
                address = UnknownAddress(socket.AF_INET6)
                if entry.netmask:
                    mask = entry.netmask.split("/")[0]
                    prefix = _count_bits(ipaddress.IPv6Address(mask).packed)
                else:
                    prefix = 0
            else:
                continue
            result.setdefault(name, []).append((address, prefix))
    return result


def iface_addresses(iface: str, family: int = socket.AF_INET) -> list[tuple[Address, int]]:
    """``(address, prefix length)`` pairs of one interface; ``""`` or ``"*"`` means any."""
    if not iface or iface == "*":
        if family in (socket.AF_INET, socket.AF_UNSPEC):
            return [(IPv4Address(), 0)]
        return []
    return list(interface_addresses(family).get(iface, []))
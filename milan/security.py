"""
Security module for the Milan agent.

Provides:
- IP allow-list matching (literal addresses and ``*`` segment wildcards)
- Request guard that counts the request and rejects unknown callers
"""

from __future__ import annotations

import ipaddress
import logging
import re
from typing import FrozenSet, Iterable, Tuple

from fastapi import Request

from .errors import AccessDenied, ConfigError

logger = logging.getLogger("milan.security")

LOOPBACK_ADDRESSES = frozenset({"127.0.0.1", "::1"})

_WILDCARD = "*"
_DIGITS_RE = re.compile(r"[0-9]+")


def _normalize_ip(ip: str) -> str | None:
    """
    Return the canonical text form of ``ip``, or None if it is not an address.

    IPv4-mapped IPv6 addresses are reduced to their IPv4 form.
    """
    try:
        addr = ipaddress.ip_address(ip.strip())
    except ValueError:
        return None
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return str(addr.ipv4_mapped)
    return str(addr)


def _is_wildcard_rule(rule: str) -> bool:
    return _WILDCARD in rule


def _validate_wildcard_rule(rule: str) -> Tuple[str, ...]:
    segments = tuple(rule.split("."))
    for seg in segments:
        if seg == _WILDCARD:
            continue
        if _WILDCARD in seg or not _DIGITS_RE.fullmatch(seg):
            raise ConfigError(
                f"Invalid allow-list pattern '{rule}': '*' must replace a whole segment"
            )
    return segments


class IPAllowList:
    """
    Immutable set of authorization rules.

    A rule is either a literal IPv4/IPv6 address or a dotted pattern in
    which whole segments are replaced by ``*`` (e.g. ``192.168.1.*``).
    Loopback callers are always allowed, whatever the rules say.
    """

    def __init__(self, rules: Iterable[str] = ()):
        literals: set[str] = set()
        patterns: set[Tuple[str, ...]] = set()

        for raw in rules:
            rule = (raw or "").strip()
            if not rule:
                continue
            if _is_wildcard_rule(rule):
                patterns.add(_validate_wildcard_rule(rule))
                continue
            normalized = _normalize_ip(rule)
            if normalized is None:
                raise ConfigError(f"Invalid allow-list entry '{rule}'")
            literals.add(normalized)

        self._literals: FrozenSet[str] = frozenset(literals)
        self._patterns: FrozenSet[Tuple[str, ...]] = frozenset(patterns)

    @property
    def rules(self) -> list[str]:
        """Configured rules in display form, sorted."""
        return sorted(self._literals | {".".join(p) for p in self._patterns})

    def is_allowed(self, ip: str | None) -> bool:
        """
        Check whether a caller IP may use the agent.

        Args:
            ip: Caller address as reported by the transport

        Returns:
            True for loopback, a literal match or a wildcard match.
            Anything that does not parse as an IP address is refused.
        """
        if ip is None:
            return False
        if ip in LOOPBACK_ADDRESSES:
            return True

        normalized = _normalize_ip(ip)
        if normalized is None:
            return False
        if normalized in LOOPBACK_ADDRESSES:
            return True
        if normalized in self._literals:
            return True

        segments = normalized.split(".")
        return any(self._matches(pattern, segments) for pattern in self._patterns)

    @staticmethod
    def _matches(pattern: Tuple[str, ...], segments: list[str]) -> bool:
        if len(pattern) != len(segments):
            return False
        for want, got in zip(pattern, segments):
            if want == _WILDCARD:
                if not _DIGITS_RE.fullmatch(got):
                    return False
            elif want != got:
                return False
        return True


def client_ip(request: Request) -> str | None:
    """Caller address from the transport layer."""
    return request.client.host if request.client else None


def enforce_allow_list(request: Request) -> None:
    """
    Count the request and refuse callers outside the allow-list.

    Called from the outermost middleware, so it runs for every method and
    path before routing.

    Raises:
        AccessDenied: 403 for callers that are not allowed
    """
    request.app.state.stats.record_request()

    ip = client_ip(request)
    if not request.app.state.allow_list.is_allowed(ip):
        logger.warning("Blocked: %s -> %s", ip, request.url.path)
        raise AccessDenied(ip or "unknown")

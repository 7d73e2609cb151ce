"""
Tests for IP allow-list matching.
"""

import pytest

from milan.errors import ConfigError
from milan.security import IPAllowList


class TestLoopback:
    """Loopback callers are always allowed."""

    @pytest.mark.parametrize("ip", ["127.0.0.1", "::1"])
    def test_allowed_with_empty_list(self, ip):
        assert IPAllowList([]).is_allowed(ip)

    @pytest.mark.parametrize("ip", ["127.0.0.1", "::1"])
    def test_allowed_with_unrelated_rules(self, ip):
        assert IPAllowList(["10.0.0.1"]).is_allowed(ip)

    def test_ipv4_mapped_loopback(self):
        assert IPAllowList([]).is_allowed("::ffff:127.0.0.1")


class TestLiteralRules:

    @pytest.mark.parametrize("ip", ["100.64.0.7", "192.168.0.10", "fd7a:115c:a1e0::1"])
    def test_literal_is_reflexive(self, ip):
        assert IPAllowList([ip]).is_allowed(ip)

    def test_other_address_denied(self):
        allow = IPAllowList(["100.64.0.7"])
        assert not allow.is_allowed("100.64.0.8")
        assert not allow.is_allowed("100.64.0.70")

    def test_ipv6_literal_compared_canonically(self):
        allow = IPAllowList(["FD7A:115C:A1E0:0:0:0:0:1"])
        assert allow.is_allowed("fd7a:115c:a1e0::1")

    def test_ipv4_mapped_caller_matches_ipv4_rule(self):
        assert IPAllowList(["100.64.0.7"]).is_allowed("::ffff:100.64.0.7")

    def test_blank_entries_ignored(self):
        allow = IPAllowList(["", "  ", "10.0.0.1 "])
        assert allow.rules == ["10.0.0.1"]


class TestWildcardRules:

    def test_last_segment_wildcard(self):
        allow = IPAllowList(["192.168.1.*"])
        assert allow.is_allowed("192.168.1.1")
        assert allow.is_allowed("192.168.1.254")

    def test_wildcard_does_not_cross_segments(self):
        allow = IPAllowList(["192.168.1.*"])
        assert not allow.is_allowed("192.168.2.1")
        assert not allow.is_allowed("192.168.11.1")

    def test_segment_count_must_match(self):
        allow = IPAllowList(["10.*.1"])
        assert not allow.is_allowed("10.0.0.1")

    def test_middle_segments(self):
        allow = IPAllowList(["10.*.*.5"])
        assert allow.is_allowed("10.1.2.5")
        assert not allow.is_allowed("10.1.2.6")

    def test_wildcard_never_matches_ipv6(self):
        assert not IPAllowList(["*.*.*.*"]).is_allowed("fd7a:115c:a1e0::1")

    @pytest.mark.parametrize("rule", ["192.168.1.1*", "192.168.*1.1", "192.168.x.*"])
    def test_partial_or_bad_patterns_rejected(self, rule):
        with pytest.raises(ConfigError):
            IPAllowList([rule])


class TestMalformedInput:

    @pytest.mark.parametrize(
        "ip",
        ["", "localhost", "testclient", "192.168.1", "192.168.1.300", "192.168.1.a", None],
    )
    def test_fail_closed(self, ip):
        allow = IPAllowList(["192.168.1.*", "192.168.1.1"])
        assert allow.is_allowed(ip) is False

    def test_invalid_literal_rejected_at_load(self):
        with pytest.raises(ConfigError):
            IPAllowList(["not-an-ip"])

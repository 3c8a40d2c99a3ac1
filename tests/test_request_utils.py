"""Tests for request utility functions."""

from unittest.mock import MagicMock

import pytest

from tokengate.core.request_utils import _is_valid_ip, get_client_ip


class TestIsValidIP:
    """Tests for _is_valid_ip function."""

    @pytest.mark.parametrize("value", ["192.168.1.1", "8.8.8.8", "::1", "2001:db8::1"])
    def test_valid_addresses(self, value):
        assert _is_valid_ip(value) is True

    @pytest.mark.parametrize("value", ["", "not-an-ip", "256.1.1.1", "192.168.1.1:8080", " 10.0.0.1"])
    def test_invalid_addresses(self, value):
        assert _is_valid_ip(value) is False


class TestGetClientIP:
    """Tests for get_client_ip function."""

    def _create_mock_request(self, client_host=None, x_real_ip=None, x_forwarded_for=None):
        request = MagicMock()
        headers = {}
        if x_real_ip:
            headers["X-Real-IP"] = x_real_ip
        if x_forwarded_for:
            headers["X-Forwarded-For"] = x_forwarded_for
        request.headers = headers
        if client_host:
            request.client = MagicMock()
            request.client.host = client_host
        else:
            request.client = None
        return request

    def test_direct_peer(self):
        request = self._create_mock_request(client_host="10.1.2.3")
        assert get_client_ip(request) == "10.1.2.3"

    def test_real_ip_honoured_from_loopback_proxy(self):
        request = self._create_mock_request(client_host="127.0.0.1", x_real_ip="203.0.113.7")
        assert get_client_ip(request) == "203.0.113.7"

    def test_real_ip_ignored_from_remote_peer(self):
        request = self._create_mock_request(client_host="10.1.2.3", x_real_ip="203.0.113.7")
        assert get_client_ip(request) == "10.1.2.3"

    def test_invalid_real_ip_falls_back_to_peer(self):
        request = self._create_mock_request(client_host="127.0.0.1", x_real_ip="evil")
        assert get_client_ip(request) == "127.0.0.1"

    def test_forwarded_for_never_trusted(self):
        request = self._create_mock_request(client_host="127.0.0.1", x_forwarded_for="203.0.113.7")
        assert get_client_ip(request) == "127.0.0.1"

    def test_unknown_peer(self):
        assert get_client_ip(self._create_mock_request()) == ""

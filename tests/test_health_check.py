"""
Tests for the deployment health probe
"""
from unittest.mock import MagicMock, patch

import requests

from rentacar.health_check import check_url, main


def http_returning(*status_codes):
    """Fake requests module answering with the given status codes in turn"""
    http = MagicMock()
    http.get.side_effect = [MagicMock(status_code=code) for code in status_codes]
    return http


class TestCheckUrl:
    """Test single URL polling"""

    def test_healthy_first_try(self):
        http = http_returning(200)
        sleep = MagicMock()

        assert check_url("https://x/", http=http, sleep=sleep) is True
        http.get.assert_called_once_with("https://x/", timeout=5.0)
        sleep.assert_not_called()

    def test_redirect_counts_as_healthy(self):
        assert check_url("https://x/", http=http_returning(302), sleep=MagicMock()) is True

    def test_recovers_after_failures(self):
        http = http_returning(503, 500, 200)
        sleep = MagicMock()

        assert check_url("https://x/", http=http, sleep=sleep) is True
        assert http.get.call_count == 3
        assert sleep.call_count == 2

    def test_exhausts_retries(self):
        http = http_returning(*[500] * 6)
        sleep = MagicMock()

        assert check_url("https://x/", http=http, sleep=sleep) is False
        assert http.get.call_count == 6
        # No wait after the last attempt
        assert sleep.call_count == 5
        sleep.assert_called_with(5.0)

    def test_network_errors_are_retried(self):
        http = MagicMock()
        http.get.side_effect = [requests.ConnectionError("refused"), requests.Timeout("slow"),
                                MagicMock(status_code=200)]

        assert check_url("https://x/", http=http, sleep=MagicMock()) is True


class TestMain:
    """Test exit codes"""

    def test_both_healthy(self):
        http = http_returning(200, 200)

        code = main("front", "bff", "example.net", http=http, sleep=MagicMock())

        assert code == 0
        urls = [c.args[0] for c in http.get.call_args_list]
        assert urls == ["https://front.example.net/", "https://bff.example.net/api/health"]

    def test_always_500_exits_1(self):
        http = MagicMock()
        http.get.return_value = MagicMock(status_code=500)

        code = main("front", "bff", "example.net", http=http, sleep=MagicMock())

        assert code == 1
        assert http.get.call_count == 12

    def test_one_unhealthy_exits_1(self):
        http = http_returning(200, *[404] * 6)

        assert main("front", "bff", "example.net", http=http, sleep=MagicMock()) == 1

    def test_missing_targets_exit_2_without_network(self):
        with patch("rentacar.health_check.requests.get") as get:
            assert main("", "bff") == 2
            assert main("front", "") == 2
            get.assert_not_called()

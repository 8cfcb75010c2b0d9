"""Tests for subscriptions.retry module"""
import unittest

from subscriptions.retry import RetryPolicy, default_retryable_status


class TestRetryPolicy(unittest.TestCase):
    """Backoff schedule and attempt budget"""

    def test_first_attempt_never_waits(self):
        self.assertEqual(RetryPolicy().backoff(0), 0)

    def test_backoff_doubles_then_caps(self):
        policy = RetryPolicy()
        waits = [policy.backoff(i) for i in range(1, 10)]
        self.assertEqual(waits, [2, 4, 8, 15, 15, 15, 15, 15, 15])

    def test_total_backoff(self):
        self.assertEqual(RetryPolicy().total_backoff(), sum(min(2**i, 15) for i in range(1, 10)))

    def test_attempt_budget(self):
        policy = RetryPolicy()
        attempts = list(policy.attempts())
        self.assertEqual(len(attempts), 10)
        self.assertTrue(policy.is_last(attempts[-1]))
        self.assertFalse(policy.is_last(attempts[-2]))

    def test_custom_policy(self):
        policy = RetryPolicy(max_attempts=3, max_backoff=3)
        self.assertEqual([policy.backoff(i) for i in range(3)], [0, 2, 3])


class TestRetryableStatus(unittest.TestCase):
    """Which HTTP statuses get another attempt"""

    def test_server_errors_are_retried(self):
        for status in (500, 502, 503, 504):
            self.assertTrue(default_retryable_status(status), status)

    def test_up_to_404_is_retried(self):
        for status in (301, 401, 403, 404):
            self.assertTrue(default_retryable_status(status), status)

    def test_gone_and_friends_fail_fast(self):
        for status in (405, 410, 422, 451):
            self.assertFalse(default_retryable_status(status), status)


if __name__ == "__main__":
    unittest.main()

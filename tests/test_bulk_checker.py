"""
批量检查器测试
"""
import threading
import time
from datetime import datetime, timezone, timedelta
from unittest.mock import patch

from domain_ssl_checker.interfaces import SSLExpiryCheckerInterface
from domain_ssl_checker.models import BulkItem, CheckerSettings, CheckResult, CheckStatus
from domain_ssl_checker.services.bulk_checker import BulkSSLChecker, BULK_TIMEOUT_MESSAGE
from domain_ssl_checker.services.ssl_checker import SSLExpiryChecker

NOW = datetime(2026, 5, 1, tzinfo=timezone.utc)
DEADLINE = datetime(2026, 5, 1, 0, 5, tzinfo=timezone.utc)


class FakeChecker(SSLExpiryCheckerInterface):
    """可控耗时的检查器"""

    def __init__(self, delays=None, failures=(), blocker=None):
        self.delays = delays or {}
        self.failures = set(failures)
        self.blocker = blocker
        self.calls = []
        self.active = 0
        self.max_active = 0
        self.lock = threading.Lock()

    def check(self, host, port=443):
        with self.lock:
            self.calls.append((host, port))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.blocker is not None:
                self.blocker.wait(5)
            time.sleep(self.delays.get(host, 0.01))
            if host in self.failures:
                raise RuntimeError("unexpected failure")
            return CheckResult(host=host, port=port, status=CheckStatus.OK, checked_at=NOW,
                               days_remaining=30, expires_at=NOW + timedelta(days=30), chain_trusted=True)
        finally:
            with self.lock:
                self.active -= 1

    def check_with_fallback(self, host, port=443, fallback_ip=None, resolve_dns_if_no_ip=True):
        return self.check(host, port)


def _items(count):
    return [
        BulkItem(client_name=f"client-{i}", client_domain=f" host{i}.example.com ", port=443 + i,
                 client_ip=f"192.0.2.{i}")
        for i in range(count)
    ]


class TestBulkSSLChecker:
    """批量检查器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.bulk_checker = None
        self.blocker = None

    def teardown_method(self):
        """测试后清理"""
        if self.blocker is not None:
            self.blocker.set()
        if self.bulk_checker is not None:
            self.bulk_checker.shutdown()

    def test_all_items_complete_in_order(self):
        """测试5个条目、并发2、超时充足时全部完成且顺序一致"""
        checker = FakeChecker(delays={"host0.example.com": 0.2, "host3.example.com": 0.1})
        self.bulk_checker = BulkSSLChecker(checker, concurrency_limit=2, overall_timeout_ms=10000)
        items = _items(5)

        results = self.bulk_checker.check_bulk(items)

        assert len(results) == 5
        assert [r.item for r in results] == items
        assert [r.result.host for r in results] == [f"host{i}.example.com" for i in range(5)]
        assert [r.result.port for r in results] == [443, 444, 445, 446, 447]
        assert all(r.result.status == CheckStatus.OK for r in results)
        assert all(r.result.error_message != BULK_TIMEOUT_MESSAGE for r in results)
        assert checker.max_active <= 2

    def test_domain_is_trimmed(self):
        """测试检查前去除域名首尾空白"""
        checker = FakeChecker()
        self.bulk_checker = BulkSSLChecker(checker, concurrency_limit=1, overall_timeout_ms=5000)

        self.bulk_checker.check_bulk(_items(1))

        assert checker.calls == [("host0.example.com", 443)]

    def test_deadline_shorter_than_any_item(self):
        """测试总超时短于任何条目耗时时全部返回超时占位结果"""
        self.blocker = threading.Event()
        checker = FakeChecker(blocker=self.blocker)
        self.bulk_checker = BulkSSLChecker(checker, concurrency_limit=2, overall_timeout_ms=100,
                                           clock=lambda: DEADLINE)
        items = _items(4)

        results = self.bulk_checker.check_bulk(items)

        assert len(results) == 4
        for item, bulk in zip(items, results):
            assert bulk.item == item
            assert bulk.result.status == CheckStatus.ERROR
            assert bulk.result.error_message == BULK_TIMEOUT_MESSAGE
            assert bulk.result.host == item.client_domain
            assert bulk.result.port == item.port
            assert bulk.result.checked_at == DEADLINE
            assert bulk.result.expires_at is None
            assert bulk.result.days_remaining == 0

    def test_partial_completion(self):
        """测试部分完成时只有未完成条目为占位结果"""
        checker = FakeChecker(delays={"host1.example.com": 3})
        self.bulk_checker = BulkSSLChecker(checker, concurrency_limit=3, overall_timeout_ms=1000)

        results = self.bulk_checker.check_bulk(_items(3))

        assert [r.result.status for r in results] == [CheckStatus.OK, CheckStatus.ERROR, CheckStatus.OK]
        assert results[1].result.error_message == BULK_TIMEOUT_MESSAGE

    def test_task_failure_does_not_abort_batch(self):
        """测试单个任务异常降级为占位结果，不影响其他任务"""
        checker = FakeChecker(failures={"host2.example.com"})
        self.bulk_checker = BulkSSLChecker(checker, concurrency_limit=2, overall_timeout_ms=5000)

        results = self.bulk_checker.check_bulk(_items(4))

        statuses = [r.result.status for r in results]
        assert statuses == [CheckStatus.OK, CheckStatus.OK, CheckStatus.ERROR, CheckStatus.OK]
        assert results[2].result.error_message == BULK_TIMEOUT_MESSAGE

    def test_empty_items(self):
        """测试空列表"""
        self.bulk_checker = BulkSSLChecker(FakeChecker(), concurrency_limit=1, overall_timeout_ms=1000)

        assert self.bulk_checker.check_bulk([]) == []

    def test_to_dict_merges_client_metadata(self):
        """测试批量结果合并客户端字段"""
        self.bulk_checker = BulkSSLChecker(FakeChecker(), concurrency_limit=1, overall_timeout_ms=5000)

        data = self.bulk_checker.check_bulk(_items(1))[0].to_dict()

        assert data['client_name'] == "client-0"
        assert data['client_ip'] == "192.0.2.0"
        assert data['client_domain'] == " host0.example.com "
        assert data['host'] == "host0.example.com"
        assert data['status'] == "OK"
        assert data['chainTrusted'] is True
        assert 'errorMessage' not in data

    @patch('domain_ssl_checker.services.handshake.socket.create_connection')
    def test_invalid_host_reports_connect_error(self, mock_connection):
        """测试无法编码的主机名返回连接错误而不是超时占位结果"""
        mock_connection.side_effect = UnicodeError(
            "encoding with 'idna' codec failed (UnicodeError: label empty or too long)"
        )
        checker = SSLExpiryChecker(CheckerSettings(), clock=lambda: NOW)
        self.bulk_checker = BulkSSLChecker(checker, concurrency_limit=1, overall_timeout_ms=5000)

        results = self.bulk_checker.check_bulk([BulkItem(client_name="bad", client_domain="a..example.com")])

        assert results[0].result.status == CheckStatus.ERROR
        assert results[0].result.error_message.startswith("ConnectError: ")
        assert results[0].result.error_message != BULK_TIMEOUT_MESSAGE

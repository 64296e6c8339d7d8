"""
批量证书检查服务
"""
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import List, Optional

from ..interfaces import BulkCheckerInterface, SSLExpiryCheckerInterface
from ..models import BulkCheckResult, BulkItem, CheckResult
from .error_handler import BulkTimeoutError
from .ssl_checker import utc_now

BULK_TIMEOUT_MESSAGE = "Timed out while performing SSL check"


class BulkSSLChecker(BulkCheckerInterface):
    """批量证书检查器：固定大小线程池 + 整批截止时间"""

    def __init__(self, checker: SSLExpiryCheckerInterface, concurrency_limit: int = 16,
                 overall_timeout_ms: int = 180000, clock=utc_now):
        """
        初始化批量检查器

        Args:
            checker: 单个主机检查器
            concurrency_limit: 同时执行的检查数量上限
            overall_timeout_ms: 整批检查的总超时时间（毫秒）
            clock: 返回当前UTC时间的函数
        """
        self.checker = checker
        self.concurrency_limit = concurrency_limit
        self.overall_timeout = overall_timeout_ms / 1000.0
        self.clock = clock
        self.logger = logging.getLogger(__name__)
        self.executor = ThreadPoolExecutor(
            max_workers=concurrency_limit,
            thread_name_prefix="ssl-bulk"
        )

    def check_bulk(self, items: List[BulkItem]) -> List[BulkCheckResult]:
        """
        并发检查全部条目，在总超时内等待

        超时未完成或执行异常的条目以ERROR占位结果返回，输出顺序与输入一致。

        Args:
            items: 批量检查条目

        Returns:
            List[BulkCheckResult]: 与输入等长、同序的检查结果
        """
        if not items:
            return []

        started = time.monotonic()
        self.logger.info(
            f"开始批量检查 {len(items)} 个域名，并发 {self.concurrency_limit}，"
            f"总超时 {self.overall_timeout:.1f} 秒"
        )

        futures = [self.executor.submit(self._check_item, item) for item in items]
        done, not_done = wait(futures, timeout=self.overall_timeout)

        deadline_at = self.clock()
        for future in not_done:
            # 尚未开始的任务直接取消，已在执行的任务不强制中断
            future.cancel()

        results = [
            self._collect(item, future, deadline_at)
            for item, future in zip(items, futures)
        ]

        self.logger.info(
            f"批量检查结束，完成 {len(done)}/{len(items)} 个，"
            f"耗时 {time.monotonic() - started:.2f} 秒"
        )
        return results

    def shutdown(self, wait_for_tasks: bool = False):
        """关闭线程池"""
        self.executor.shutdown(wait=wait_for_tasks, cancel_futures=True)

    def _check_item(self, item: BulkItem) -> CheckResult:
        return self.checker.check(item.client_domain.strip(), item.port)

    def _collect(self, item: BulkItem, future: Future, deadline_at) -> BulkCheckResult:
        """按位置合并任务结果，未完成或失败的任务生成占位结果"""
        result: Optional[CheckResult] = None

        if future.done() and not future.cancelled():
            error = future.exception()
            if error is None:
                result = future.result()
            else:
                self.logger.error(
                    f"检查 {item.client_domain}:{item.port} 时发生意外错误: {type(error).__name__}: {error}"
                )

        if result is None:
            timeout_error = BulkTimeoutError(BULK_TIMEOUT_MESSAGE)
            self.logger.warning(f"{item.client_domain}:{item.port} 未能完成检查: {timeout_error.detail}")
            result = CheckResult.error(item.client_domain, item.port, timeout_error.detail, deadline_at)

        return BulkCheckResult(item=item, result=result)

"""
证书过期计算服务
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List
from ..models import CheckResult, CheckStatus

MILLIS_PER_DAY = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class ExpiryEvaluation:
    """过期评估结果"""
    status: CheckStatus
    days_remaining: int


class ExpiryCalculator:
    """证书过期计算器"""

    def __init__(self, expiring_days: int = 7):
        """
        初始化过期计算器

        Args:
            expiring_days: 剩余天数不超过该值时视为即将过期，默认7天
        """
        self.expiring_days = expiring_days

    def evaluate(self, not_after: datetime, now: datetime) -> ExpiryEvaluation:
        """
        评估证书过期状态

        Args:
            not_after: 证书过期时间（UTC）
            now: 当前时间（UTC）

        Returns:
            ExpiryEvaluation: 状态与剩余天数
        """
        # 过期时间等于当前时间也视为已过期
        if not_after <= now:
            return ExpiryEvaluation(status=CheckStatus.EXPIRED, days_remaining=0)

        days_remaining = self.calculate_days_remaining(not_after, now)

        if days_remaining <= self.expiring_days:
            status = CheckStatus.EXPIRING
        else:
            status = CheckStatus.OK

        return ExpiryEvaluation(status=status, days_remaining=days_remaining)

    def calculate_days_remaining(self, not_after: datetime, now: datetime) -> int:
        """
        计算剩余天数（按整毫秒差向上取整）

        Args:
            not_after: 证书过期时间
            now: 当前时间

        Returns:
            int: 剩余天数，已过期时为0，未过期时至少为1
        """
        if not_after <= now:
            return 0

        millis = (not_after - now) // timedelta(milliseconds=1)
        days = -(-millis // MILLIS_PER_DAY)
        return max(days, 1)

    def categorize_results(self, results: List[CheckResult]) -> Dict[str, List[CheckResult]]:
        """
        按状态对检查结果分类

        Args:
            results: 检查结果列表

        Returns:
            Dict[str, List[CheckResult]]: 分类结果
        """
        return {
            'expired': [r for r in results if r.status == CheckStatus.EXPIRED],
            'expiring': [r for r in results if r.status == CheckStatus.EXPIRING],
            'healthy': [r for r in results if r.status == CheckStatus.OK],
            'failed': [r for r in results if r.status == CheckStatus.ERROR]
        }

    def get_expiry_summary(self, results: List[CheckResult]) -> str:
        """
        获取过期状态摘要

        Args:
            results: 检查结果列表

        Returns:
            str: 摘要信息
        """
        categorized = self.categorize_results(results)

        summary_parts = [
            f"总计: {len(results)} 个域名",
            f"有效: {len(results) - len(categorized['failed'])} 个",
            f"失败: {len(categorized['failed'])} 个"
        ]

        if categorized['expired']:
            summary_parts.append(f"已过期: {len(categorized['expired'])} 个")

        if categorized['expiring']:
            summary_parts.append(f"即将过期({self.expiring_days}天内): {len(categorized['expiring'])} 个")

        if categorized['healthy']:
            summary_parts.append(f"健康: {len(categorized['healthy'])} 个")

        return ", ".join(summary_parts)

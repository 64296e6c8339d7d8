"""
SSL证书检查服务
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from cryptography import x509

from ..interfaces import (
    EndpointResolverInterface,
    HandshakeExecutorInterface,
    SSLExpiryCheckerInterface,
)
from ..models import CheckerSettings, CheckResult, HandshakeOutcome
from .endpoint_resolver import EndpointResolver
from .error_handler import NetworkErrorHandler, SSLCheckError, describe_error
from .expiry_calculator import ExpiryCalculator
from .handshake import HandshakeExecutor
from .interception import is_likely_intercepted


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SSLExpiryChecker(SSLExpiryCheckerInterface):
    """SSL证书过期检查器实现"""

    def __init__(self, settings: Optional[CheckerSettings] = None,
                 handshake_executor: Optional[HandshakeExecutorInterface] = None,
                 endpoint_resolver: Optional[EndpointResolverInterface] = None,
                 expiry_calculator: Optional[ExpiryCalculator] = None,
                 clock: Callable[[], datetime] = utc_now):
        """
        初始化SSL证书检查器

        Args:
            settings: 检查器配置，默认使用内置默认值
            handshake_executor: 握手执行器
            endpoint_resolver: 备用地址解析器
            expiry_calculator: 过期计算器
            clock: 返回当前UTC时间的函数
        """
        self.settings = settings or CheckerSettings()
        self.handshake_executor = handshake_executor or HandshakeExecutor(
            connect_timeout_ms=self.settings.connect_timeout_ms,
            read_timeout_ms=self.settings.read_timeout_ms
        )
        self.endpoint_resolver = endpoint_resolver or EndpointResolver(
            dns_timeout_ms=self.settings.dns_timeout_ms
        )
        self.expiry_calculator = expiry_calculator or ExpiryCalculator(
            expiring_days=self.settings.expiring_days
        )
        self.clock = clock
        self.logger = logging.getLogger(__name__)
        self.error_handler = NetworkErrorHandler()

    def check(self, host: str, port: int = 443) -> CheckResult:
        """
        检查单个主机的SSL证书

        Args:
            host: 主机名
            port: 端口，默认443

        Returns:
            CheckResult: 检查结果，失败时为ERROR结果
        """
        result, _ = self._check_internal(host, port)
        return result

    def check_with_fallback(self, host: str, port: int = 443, fallback_ip: Optional[str] = None,
                            resolve_dns_if_no_ip: bool = True) -> CheckResult:
        """
        检查证书，证书疑似被拦截设备替换时改连备用地址

        Args:
            host: 主机名
            port: 端口
            fallback_ip: 显式指定的备用IP
            resolve_dns_if_no_ip: 未指定备用IP时是否通过DNS获取备用地址

        Returns:
            CheckResult: 首个非ERROR的备用结果；均失败时返回主结果
        """
        primary, certificate = self._check_internal(host, port)

        if primary.is_error:
            return primary

        if not is_likely_intercepted(certificate):
            return primary

        self.logger.warning(f"{host}:{port} 的证书疑似被中间设备拦截，尝试备用地址")

        targets = self.endpoint_resolver.resolve_fallback_targets(host, fallback_ip, resolve_dns_if_no_ip)
        for target in targets:
            fallback, _ = self._check_internal(host, port, connect_address=target)
            if not fallback.is_error:
                self.logger.info(f"{host}:{port} 通过备用地址 {target} 获取证书成功")
                return fallback
            self.logger.warning(f"{host}:{port} 备用地址 {target} 检查失败: {fallback.error_message}")

        return primary

    def _check_internal(self, host: str, port: int,
                        connect_address: Optional[str] = None) -> Tuple[CheckResult, Optional[x509.Certificate]]:
        """
        执行一次完整检查：默认信任库失败后改用宽松信任策略

        Returns:
            Tuple[CheckResult, Optional[x509.Certificate]]: 检查结果及叶子证书
        """
        checked_at = self.clock()

        try:
            outcome = self._handshake(host, port, connect_address, trust_all=False)
        except SSLCheckError as first_error:
            self.error_handler.handle_ssl_connection_error(host, port, first_error)
            try:
                outcome = self._handshake(host, port, connect_address, trust_all=True)
            except SSLCheckError as second_error:
                self.error_handler.handle_ssl_connection_error(host, port, second_error, trust_all=True)
                return CheckResult.error(host, port, describe_error(second_error), checked_at), None

        return self._build_result(host, port, outcome, checked_at), outcome.leaf_certificate

    def _handshake(self, host: str, port: int, connect_address: Optional[str],
                   trust_all: bool) -> HandshakeOutcome:
        return self.handshake_executor.attempt_handshake(
            host, port, connect_address=connect_address, trust_all=trust_all
        )

    def _build_result(self, host: str, port: int, outcome: HandshakeOutcome,
                      checked_at: datetime) -> CheckResult:
        """根据握手结果组装检查结果"""
        expires_at = outcome.leaf_certificate.not_valid_after_utc
        evaluation = self.expiry_calculator.evaluate(expires_at, checked_at)

        return CheckResult(
            host=host,
            port=port,
            status=evaluation.status,
            checked_at=checked_at,
            days_remaining=evaluation.days_remaining,
            expires_at=expires_at,
            chain_trusted=outcome.chain_trusted
        )

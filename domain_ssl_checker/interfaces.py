"""
服务接口定义
"""
from abc import ABC, abstractmethod
from typing import List, Optional
from .models import BulkItem, BulkCheckResult, CheckResult, HandshakeOutcome


class EndpointResolverInterface(ABC):
    """备用连接地址解析器接口"""

    @abstractmethod
    def resolve_fallback_targets(self, host: str, fallback_ip: Optional[str] = None,
                                 resolve_dns: bool = True) -> List[str]:
        """按顺序返回备用连接地址"""
        pass


class HandshakeExecutorInterface(ABC):
    """TLS握手执行器接口"""

    @abstractmethod
    def attempt_handshake(self, host: str, port: int, connect_address: Optional[str] = None,
                          trust_all: bool = False) -> HandshakeOutcome:
        """执行一次TLS握手并返回叶子证书"""
        pass


class SSLExpiryCheckerInterface(ABC):
    """SSL证书过期检查器接口"""

    @abstractmethod
    def check(self, host: str, port: int = 443) -> CheckResult:
        """检查单个主机的SSL证书"""
        pass

    @abstractmethod
    def check_with_fallback(self, host: str, port: int = 443, fallback_ip: Optional[str] = None,
                            resolve_dns_if_no_ip: bool = True) -> CheckResult:
        """检查证书，疑似被中间设备拦截时改用备用地址"""
        pass


class BulkCheckerInterface(ABC):
    """批量检查器接口"""

    @abstractmethod
    def check_bulk(self, items: List[BulkItem]) -> List[BulkCheckResult]:
        """批量检查，结果顺序与输入一致"""
        pass


class NotificationServiceInterface(ABC):
    """通知服务接口"""

    @abstractmethod
    def send_expiry_notification(self, results: List[CheckResult]) -> bool:
        """发送证书过期通知"""
        pass

    @abstractmethod
    def format_notification_content(self, results: List[CheckResult]) -> str:
        """格式化通知内容"""
        pass

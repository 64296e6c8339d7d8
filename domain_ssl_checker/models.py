"""
数据模型定义
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from cryptography import x509


class CheckStatus(str, Enum):
    """证书检查状态"""
    OK = "OK"
    EXPIRING = "EXPIRING"
    EXPIRED = "EXPIRED"
    ERROR = "ERROR"


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """UTC时间格式化为ISO-8601字符串（Z后缀）"""
    if value is None:
        return None
    return value.isoformat().replace('+00:00', 'Z')


@dataclass(frozen=True)
class CheckerSettings:
    """检查器配置"""
    connect_timeout_ms: int = 5000
    read_timeout_ms: int = 7000
    expiring_days: int = 7
    bulk_concurrency: int = 16
    bulk_timeout_ms: int = 180000
    dns_timeout_ms: int = 2000
    bulk_max_items: int = 300


@dataclass(frozen=True)
class CheckTarget:
    """单次握手的连接目标"""
    host: str
    port: int = 443
    connect_address: Optional[str] = None

    @property
    def address(self) -> str:
        """实际连接地址，未指定时使用主机名"""
        if self.connect_address and self.connect_address.strip():
            return self.connect_address.strip()
        return self.host


@dataclass(frozen=True)
class HandshakeOutcome:
    """一次TLS握手的结果"""
    leaf_certificate: x509.Certificate
    chain_trusted: bool


@dataclass(frozen=True)
class CheckResult:
    """单个主机的证书检查结果"""
    host: str
    port: int
    status: CheckStatus
    checked_at: datetime
    days_remaining: int = 0
    expires_at: Optional[datetime] = None
    error_message: Optional[str] = None
    chain_trusted: Optional[bool] = None

    @classmethod
    def error(cls, host: str, port: int, message: str, checked_at: datetime) -> 'CheckResult':
        """构造错误结果"""
        return cls(
            host=host,
            port=port,
            status=CheckStatus.ERROR,
            checked_at=checked_at,
            days_remaining=0,
            error_message=message
        )

    @property
    def is_error(self) -> bool:
        return self.status == CheckStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """
        转换为响应字典，省略空值字段

        Returns:
            Dict[str, Any]: 序列化字段
        """
        data = {
            'host': self.host,
            'port': self.port,
            'expiresAt': format_timestamp(self.expires_at),
            'daysRemaining': self.days_remaining,
            'status': self.status.value,
            'errorMessage': self.error_message,
            'checkedAt': format_timestamp(self.checked_at),
            'chainTrusted': self.chain_trusted
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class BulkItem:
    """批量检查的客户端条目"""
    client_name: str
    client_domain: str
    port: int = 443
    client_ip: Optional[str] = None


@dataclass(frozen=True)
class BulkCheckResult:
    """批量检查结果，按位置与输入条目一一对应"""
    item: BulkItem
    result: CheckResult

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'client_name': self.item.client_name,
            'client_ip': self.item.client_ip,
            'client_domain': self.item.client_domain
        }
        data = {key: value for key, value in data.items() if value is not None}
        data.update(self.result.to_dict())
        return data

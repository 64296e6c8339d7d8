"""
错误处理服务
"""
import socket
import ssl
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging


class SSLCheckError(Exception):
    """证书检查错误基类"""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or "")
        self.detail = detail or ""


class ConnectError(SSLCheckError):
    """TCP连接失败或超时"""


class HandshakeError(SSLCheckError):
    """TLS协商失败（协议不匹配、信任校验失败、对端重置等）"""


class NoCertificateError(SSLCheckError):
    """握手成功但对端未提供可用的X.509证书"""


class ResolutionError(SSLCheckError):
    """DNS解析失败"""


class BulkTimeoutError(SSLCheckError):
    """批量检查中单个条目未在截止时间前完成"""


class ConfigurationError(ValueError):
    """配置无效"""


def describe_error(error: BaseException) -> str:
    """
    生成可读的错误描述：错误类别加详细信息

    Args:
        error: 异常对象

    Returns:
        str: 形如 "HandshakeError: certificate verify failed" 的描述
    """
    detail = str(error).strip()
    if not detail:
        return type(error).__name__
    return f"{type(error).__name__}: {detail}"


class NetworkErrorHandler:
    """网络错误处理器"""

    def __init__(self):
        """初始化网络错误处理器"""
        self.logger = logging.getLogger(__name__)

    def handle_ssl_connection_error(self, host: str, port: int, error: Exception,
                                    trust_all: bool = False) -> Dict[str, Any]:
        """
        处理SSL连接错误

        Args:
            host: 主机名
            port: 端口
            error: 异常对象
            trust_all: 失败的尝试是否使用宽松信任策略

        Returns:
            Dict[str, Any]: 错误处理结果
        """
        cause = error.__cause__ or error
        error_info = {
            'host': host,
            'port': port,
            'error_type': type(error).__name__,
            'error_message': describe_error(error),
            'trust_policy': 'trust_all' if trust_all else 'default',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'suggested_action': self._get_suggested_action(cause)
        }

        if trust_all:
            self.logger.warning(f"{host}:{port} TLS握手失败: {error_info['error_message']}")
        else:
            self.logger.warning(
                f"{host}:{port} 使用默认信任库握手失败，改用宽松信任策略重试: {error_info['error_message']}"
            )

        return error_info

    def _get_suggested_action(self, error: BaseException) -> str:
        """
        获取错误的建议处理方案

        Args:
            error: 异常对象

        Returns:
            str: 建议的处理方案
        """
        error_message = str(error).lower()

        if isinstance(error, socket.timeout):
            return "检查网络连接，考虑增加超时时间"
        elif isinstance(error, socket.gaierror):
            return "检查域名是否正确，DNS服务器是否可用"
        elif isinstance(error, ConnectionRefusedError):
            return "检查目标服务器是否运行，端口是否正确"
        elif isinstance(error, ssl.SSLCertVerificationError):
            return "证书验证失败，可能是自签名证书或证书链问题"
        elif isinstance(error, ssl.SSLError):
            if 'handshake failure' in error_message:
                return "SSL握手失败，检查SSL/TLS版本兼容性"
            return "SSL连接问题，检查服务器SSL配置"
        elif isinstance(error, NoCertificateError):
            return "对端未提供证书，检查端口是否为TLS服务"
        elif 'network is unreachable' in error_message:
            return "网络不可达，检查网络连接和路由"
        elif 'no route to host' in error_message:
            return "无法路由到主机，检查防火墙和网络配置"
        else:
            return "检查网络连接和服务器状态"


class DNSErrorHandler:
    """DNS错误处理器"""

    def __init__(self):
        """初始化DNS错误处理器"""
        self.logger = logging.getLogger(__name__)

    def handle_dns_resolution_failure(self, host: str, error: Exception) -> Dict[str, Any]:
        """
        处理DNS解析失败，仅记录日志，不向调用方抛出

        Args:
            host: 主机名
            error: DNS错误

        Returns:
            Dict[str, Any]: 处理结果
        """
        error_info = {
            'host': host,
            'error_type': type(error).__name__,
            'error_message': describe_error(error),
            'timestamp': datetime.now(timezone.utc).isoformat()
        }

        self.logger.warning(f"解析 {host} 的备用IP失败: {error_info['error_message']}")

        return error_info

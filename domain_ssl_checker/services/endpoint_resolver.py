"""
备用连接地址解析服务
"""
import socket
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Callable, List, Optional, Tuple

from ..interfaces import EndpointResolverInterface
from .error_handler import DNSErrorHandler, ResolutionError


class EndpointResolver(EndpointResolverInterface):
    """备用连接地址解析器实现"""

    def __init__(self, dns_timeout_ms: int = 2000, resolver: Optional[Callable] = None):
        """
        初始化解析器

        Args:
            dns_timeout_ms: DNS解析超时时间（毫秒）
            resolver: 与 socket.getaddrinfo 签名一致的解析函数
        """
        self.dns_timeout = dns_timeout_ms / 1000.0
        self.resolver = resolver or socket.getaddrinfo
        self.logger = logging.getLogger(__name__)
        self.dns_error_handler = DNSErrorHandler()

    def resolve_fallback_targets(self, host: str, fallback_ip: Optional[str] = None,
                                 resolve_dns: bool = True) -> List[str]:
        """
        生成备用连接地址列表

        显式指定的IP优先且跳过DNS；否则按解析顺序返回IPv4地址，再返回IPv6地址。

        Args:
            host: 主机名
            fallback_ip: 显式指定的备用IP
            resolve_dns: 未指定IP时是否允许DNS解析

        Returns:
            List[str]: 有序的备用地址，解析失败时为空列表
        """
        if fallback_ip and fallback_ip.strip():
            return [fallback_ip.strip()]

        if not resolve_dns:
            return []

        try:
            addresses = self._resolve_addresses(host)
        except ResolutionError as e:
            self.dns_error_handler.handle_dns_resolution_failure(host, e)
            return []

        ipv4: List[str] = []
        ipv6: List[str] = []
        for family, address in addresses:
            group = ipv4 if family == socket.AF_INET else ipv6
            if address not in group:
                group.append(address)

        self.logger.debug(f"{host} 备用地址: IPv4 {ipv4}, IPv6 {ipv6}")
        return ipv4 + ipv6

    def _resolve_addresses(self, host: str) -> List[Tuple[int, str]]:
        """
        解析主机的全部地址，受DNS超时限制

        Raises:
            ResolutionError: 解析失败或超时
        """
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dns-resolve")
        future = executor.submit(self.resolver, host, None, 0, socket.SOCK_STREAM)
        try:
            infos = future.result(timeout=self.dns_timeout)
        except FutureTimeoutError as e:
            raise ResolutionError(f"DNS解析超时（{self.dns_timeout:.1f}秒）") from e
        except (OSError, UnicodeError) as e:
            raise ResolutionError(str(e)) from e
        finally:
            # 不等待卡住的解析线程
            executor.shutdown(wait=False)

        return [
            (family, sockaddr[0])
            for family, _, _, _, sockaddr in infos
            if family in (socket.AF_INET, socket.AF_INET6)
        ]

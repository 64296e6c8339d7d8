"""
域名配置管理服务
"""
import os
import re
from typing import List, Optional, Tuple
import logging

from ..models import BulkItem


class DomainConfigManager:
    """定时检查的域名配置管理器"""

    def __init__(self, env_var_name: str = "DOMAINS", default_port: int = 443):
        """
        初始化域名配置管理器

        Args:
            env_var_name: 环境变量名称，默认为"DOMAINS"
            default_port: 未指定端口时使用的端口
        """
        self.env_var_name = env_var_name
        self.default_port = default_port
        self.logger = logging.getLogger(__name__)

        # 域名格式验证正则表达式
        self.domain_pattern = re.compile(
            r'^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}$'
        )

    def get_items(self) -> List[BulkItem]:
        """
        从环境变量读取检查条目，格式为逗号分隔的 host[:port]

        Returns:
            List[BulkItem]: 有效的检查条目
        """
        domains_str = os.getenv(self.env_var_name, "")

        if not domains_str.strip():
            self.logger.warning(f"环境变量 {self.env_var_name} 为空")
            return []

        items = []
        for entry in domains_str.split(','):
            entry = entry.strip()
            if not entry:
                continue

            parsed = self._parse_entry(entry)
            if parsed is None:
                self.logger.warning(f"跳过无效域名: {entry}")
                continue

            host, port = parsed
            items.append(BulkItem(client_name=host, client_domain=host, port=port))

        self.logger.info(f"成功加载 {len(items)} 个域名")
        return items

    def validate_domain(self, domain: str) -> bool:
        """
        验证域名格式

        Args:
            domain: 要验证的域名

        Returns:
            bool: 域名是否有效
        """
        if not domain or not isinstance(domain, str):
            return False

        if len(domain) > 253:
            return False

        return bool(self.domain_pattern.match(domain))

    def _parse_entry(self, entry: str) -> Optional[Tuple[str, int]]:
        """解析 host[:port]，无效时返回 None"""
        host, port = entry.lower(), self.default_port

        if ':' in host:
            host, port_str = host.rsplit(':', 1)
            if not port_str.isdigit() or not 1 <= int(port_str) <= 65535:
                return None
            port = int(port_str)

        if not self.validate_domain(host):
            return None

        return host, port

"""
域名配置管理器测试
"""
import os
from unittest.mock import patch

from domain_ssl_checker.models import BulkItem
from domain_ssl_checker.services.domain_config import DomainConfigManager


class TestDomainConfigManager:
    """域名配置管理器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.manager = DomainConfigManager()

    @patch.dict(os.environ, {'DOMAINS': 'example.com, API.Example.org:8443 ,,test.net'})
    def test_get_items(self):
        """测试解析域名与端口"""
        items = self.manager.get_items()

        assert items == [
            BulkItem(client_name="example.com", client_domain="example.com", port=443),
            BulkItem(client_name="api.example.org", client_domain="api.example.org", port=8443),
            BulkItem(client_name="test.net", client_domain="test.net", port=443),
        ]

    @patch.dict(os.environ, {'DOMAINS': 'invalid..domain,example.com:99999,example.com:abc,ok.io'})
    def test_skips_invalid_entries(self):
        """测试跳过无效条目"""
        items = self.manager.get_items()

        assert [item.client_domain for item in items] == ["ok.io"]

    @patch.dict(os.environ, {'DOMAINS': '   '})
    def test_empty_env(self):
        """测试环境变量为空"""
        assert self.manager.get_items() == []

    def test_validate_domain(self):
        """测试域名格式验证"""
        assert self.manager.validate_domain("example.com") is True
        assert self.manager.validate_domain("sub.example.co.uk") is True
        assert self.manager.validate_domain("localhost") is False
        assert self.manager.validate_domain("") is False
        assert self.manager.validate_domain("a" * 250 + ".com") is False

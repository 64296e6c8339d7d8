"""
配置验证服务
"""
import os
import re
from typing import Any, Dict, Optional
import logging

from ..models import CheckerSettings
from .error_handler import ConfigurationError


class ConfigValidator:
    """配置验证器"""

    # 环境变量 -> (配置字段, 默认值, 最小值, 描述)
    SETTINGS_ENV_VARS = {
        'SSL_CONNECT_TIMEOUT_MS': ('connect_timeout_ms', 5000, 100, '连接超时（毫秒）'),
        'SSL_READ_TIMEOUT_MS': ('read_timeout_ms', 7000, 100, '读取超时（毫秒）'),
        'SSL_EXPIRING_DAYS': ('expiring_days', 7, 1, '即将过期阈值（天）'),
        'SSL_BULK_CONCURRENCY': ('bulk_concurrency', 16, 1, '批量检查并发数'),
        'SSL_BULK_TIMEOUT_MS': ('bulk_timeout_ms', 180000, 100, '批量检查总超时（毫秒）'),
        'SSL_DNS_TIMEOUT_MS': ('dns_timeout_ms', 2000, 100, 'DNS解析超时（毫秒）'),
        'SSL_BULK_MAX_ITEMS': ('bulk_max_items', 300, 1, '批量检查条目上限'),
    }

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        """
        初始化配置验证器

        Args:
            environ: 环境变量字典，默认使用 os.environ
        """
        self.environ = environ if environ is not None else os.environ
        self.logger = logging.getLogger(__name__)

        # 可选的环境变量
        self.optional_env_vars = {
            'DOMAINS': '定时检查的域名列表（逗号分隔）',
            'SNS_TOPIC_ARN': 'SNS主题ARN',
            'LOG_LEVEL': '日志级别'
        }

    def validate_settings(self) -> Dict[str, Any]:
        """
        验证检查器相关的环境变量

        Returns:
            Dict[str, Any]: 验证结果，values 为解析后的配置值
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'values': {}
        }

        for var_name, (field_name, default, minimum, description) in self.SETTINGS_ENV_VARS.items():
            raw_value = self.environ.get(var_name)

            if raw_value is None or not raw_value.strip():
                result['values'][field_name] = default
                continue

            try:
                value = int(raw_value.strip())
            except ValueError:
                result['is_valid'] = False
                result['errors'].append(f"{var_name} ({description}) 不是整数: {raw_value}")
                continue

            if value < minimum:
                result['is_valid'] = False
                result['errors'].append(f"{var_name} ({description}) 不能小于 {minimum}: {value}")
                continue

            result['values'][field_name] = value

        values = result['values']
        if result['is_valid'] and values['bulk_timeout_ms'] < values['connect_timeout_ms']:
            result['warnings'].append("SSL_BULK_TIMEOUT_MS 小于连接超时，批量检查可能全部超时")

        for var_name, description in self.optional_env_vars.items():
            if not self.environ.get(var_name):
                result['warnings'].append(f"缺少可选的环境变量: {var_name} ({description})")

        sns_validation = self.validate_sns_configuration()
        if self.environ.get('SNS_TOPIC_ARN') and not sns_validation['is_valid']:
            result['warnings'].extend(sns_validation['errors'])

        return result

    def load_settings(self) -> CheckerSettings:
        """
        读取并验证配置

        Returns:
            CheckerSettings: 检查器配置

        Raises:
            ConfigurationError: 任一配置值无效
        """
        validation = self.validate_settings()

        for warning in validation['warnings']:
            self.logger.debug(warning)

        if not validation['is_valid']:
            raise ConfigurationError("; ".join(validation['errors']))

        return CheckerSettings(**validation['values'])

    def validate_sns_configuration(self) -> Dict[str, Any]:
        """
        验证SNS配置

        Returns:
            Dict[str, Any]: SNS配置验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'topic_arn': None
        }

        topic_arn = self.environ.get('SNS_TOPIC_ARN')

        if not topic_arn:
            result['is_valid'] = False
            result['errors'].append("SNS_TOPIC_ARN环境变量未设置")
            return result

        result['topic_arn'] = topic_arn

        arn_pattern = r'^arn:aws:sns:[a-z0-9-]+:\d{12}:[a-zA-Z0-9_-]+$'
        if not re.match(arn_pattern, topic_arn):
            result['is_valid'] = False
            result['errors'].append(f"SNS主题ARN格式无效: {topic_arn}")

        return result

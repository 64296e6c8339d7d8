"""
日志服务
"""
import os
import logging
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from ..models import CheckResult, CheckStatus


class LoggerService:
    """日志服务实现"""

    def __init__(self, logger_name: str = "domain_ssl_checker", log_level: Optional[str] = None):
        """
        初始化日志服务

        Args:
            logger_name: 日志器名称
            log_level: 日志级别，如果为None则从环境变量读取
        """
        self.logger_name = logger_name
        self.log_level = log_level or os.getenv('LOG_LEVEL', 'INFO')

        self.logger = logging.getLogger(logger_name)
        self._configure_logger()

        self.reset_stats()

    def _configure_logger(self):
        """配置日志器"""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        self.logger.setLevel(level)

        # 避免重复添加处理器
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(level)

            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)

            self.logger.addHandler(handler)

        self.logger.propagate = False

    def log_check_start(self, domain_count: int):
        """
        记录批量检查开始

        Args:
            domain_count: 要检查的域名数量
        """
        self.execution_stats['start_time'] = datetime.now(timezone.utc)
        self.execution_stats['total_domains'] = domain_count

        self.logger.info(f"开始SSL证书检查，共 {domain_count} 个域名")

    def log_check_result(self, result: CheckResult):
        """
        记录单个检查结果

        Args:
            result: 检查结果
        """
        target = f"{result.host}:{result.port}"

        if result.is_error:
            self.execution_stats['failed_checks'] += 1
            self.execution_stats['errors'].append({
                'host': result.host,
                'port': result.port,
                'error_message': result.error_message
            })
            self.logger.error(f"证书检查失败 - {target}, 错误: {result.error_message}")
            return

        self.execution_stats['successful_checks'] += 1
        details = (
            f"过期时间: {result.expires_at.isoformat()}, "
            f"剩余天数: {result.days_remaining} 天, "
            f"信任链: {'可信' if result.chain_trusted else '不可信'}"
        )

        if result.status == CheckStatus.EXPIRED:
            self.logger.warning(f"证书已过期 - {target}, {details}")
        elif result.status == CheckStatus.EXPIRING:
            self.logger.warning(f"证书即将过期 - {target}, {details}")
        else:
            self.logger.info(f"证书正常 - {target}, {details}")

    def log_results(self, results: List[CheckResult]):
        """记录一组检查结果"""
        for result in results:
            self.log_check_result(result)

    def log_check_end(self):
        """记录检查结束"""
        self.execution_stats['end_time'] = datetime.now(timezone.utc)

        summary = self.get_execution_summary()
        self.logger.info(
            f"SSL证书检查完成，耗时 {summary['duration_seconds']:.2f} 秒: "
            f"总计 {summary['total_domains']} 个域名, "
            f"成功 {summary['successful_checks']} 个, "
            f"失败 {summary['failed_checks']} 个"
        )

    def log_notification_sent(self, notification_type: str, result_count: int, success: bool):
        """
        记录通知发送状态

        Args:
            notification_type: 通知类型（如 "SNS"）
            result_count: 通知中包含的结果数量
            success: 是否发送成功
        """
        if success:
            self.logger.info(f"{notification_type} 通知发送成功，包含 {result_count} 个域名")
        else:
            self.logger.error(f"{notification_type} 通知发送失败，包含 {result_count} 个域名")

    def log_configuration_info(self, config: Dict[str, Any]):
        """
        记录配置信息

        Args:
            config: 配置信息字典
        """
        safe_config = self._sanitize_config(config)

        self.logger.info("系统配置信息:")
        for key, value in safe_config.items():
            self.logger.info(f"  {key}: {value}")

    def _sanitize_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        清理配置信息中的敏感数据

        Args:
            config: 原始配置

        Returns:
            Dict[str, Any]: 清理后的配置
        """
        safe_config = {}
        for key, value in config.items():
            key_lower = key.lower()

            is_sensitive = (
                key_lower in {'password', 'secret', 'token', 'key', 'sns_topic_arn'} or
                key_lower.endswith(('_key', '_secret', '_password', '_token'))
            )

            if is_sensitive and isinstance(value, str) and value:
                parts = value.split(':')
                if value.startswith('arn:') and len(parts) >= 6:
                    # ARN只保留服务和资源名
                    safe_value = f"{':'.join(parts[:3])}:***:{parts[-2]}:{parts[-1]}"
                else:
                    safe_value = value[:3] + "***" if len(value) > 3 else "***"
                safe_config[key] = safe_value
            else:
                safe_config[key] = value

        return safe_config

    def get_execution_summary(self) -> Dict[str, Any]:
        """
        获取执行摘要

        Returns:
            Dict[str, Any]: 执行摘要信息
        """
        stats = self.execution_stats
        duration = 0
        if stats['start_time'] and stats['end_time']:
            duration = (stats['end_time'] - stats['start_time']).total_seconds()

        return {
            'start_time': stats['start_time'].isoformat() if stats['start_time'] else None,
            'end_time': stats['end_time'].isoformat() if stats['end_time'] else None,
            'duration_seconds': duration,
            'total_domains': stats['total_domains'],
            'successful_checks': stats['successful_checks'],
            'failed_checks': stats['failed_checks'],
            'success_rate': (
                stats['successful_checks'] / stats['total_domains']
                if stats['total_domains'] > 0 else 0
            ),
            'error_count': len(stats['errors']),
            'errors': stats['errors']
        }

    def reset_stats(self):
        """重置执行统计"""
        self.execution_stats = {
            'start_time': None,
            'end_time': None,
            'total_domains': 0,
            'successful_checks': 0,
            'failed_checks': 0,
            'errors': []
        }

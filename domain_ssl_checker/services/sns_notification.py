"""
SNS通知服务
"""
import os
import time
from typing import List, Optional
import logging
from datetime import datetime, timezone

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..interfaces import NotificationServiceInterface
from ..models import CheckResult, CheckStatus


class SNSNotificationService(NotificationServiceInterface):
    """SNS通知服务实现"""

    def __init__(self, topic_arn: Optional[str] = None, region_name: Optional[str] = None):
        """
        初始化SNS通知服务

        Args:
            topic_arn: SNS主题ARN，如果为None则从环境变量读取
            region_name: AWS区域名称，如果为None则自动检测
        """
        self.topic_arn = topic_arn or os.getenv('SNS_TOPIC_ARN')

        if region_name:
            self.region_name = region_name
        elif self.topic_arn and self.topic_arn.startswith('arn:aws:sns:'):
            # 从SNS ARN中提取区域
            self.region_name = self.topic_arn.split(':')[3]
        else:
            self.region_name = os.getenv('AWS_REGION', 'us-east-1')

        self.logger = logging.getLogger(__name__)

        self.sns_client = None
        if self.topic_arn:
            try:
                self.sns_client = boto3.client('sns', region_name=self.region_name)
            except (BotoCoreError, ClientError) as e:
                self.logger.error(f"初始化SNS客户端失败: {str(e)}")

    def send_expiry_notification(self, results: List[CheckResult]) -> bool:
        """
        发送证书告警通知（已过期、即将过期或检查失败）

        Args:
            results: 检查结果列表

        Returns:
            bool: 发送是否成功；无需告警时返回 True
        """
        alerts = [r for r in results if r.status != CheckStatus.OK]
        if not alerts:
            self.logger.info("没有需要告警的证书，跳过通知发送")
            return True

        if not self._validate_configuration():
            return False

        subject = self._format_subject(alerts)
        message = self.format_notification_content(alerts)

        return self._publish_with_retry(subject, message)

    def _publish_with_retry(self, subject: str, message: str, max_retries: int = 2) -> bool:
        """
        带重试机制的SNS消息发布

        Args:
            subject: 消息主题
            message: 消息内容
            max_retries: 最大重试次数

        Returns:
            bool: 发送是否成功
        """
        for attempt in range(max_retries + 1):
            try:
                response = self.sns_client.publish(
                    TopicArn=self.topic_arn,
                    Subject=subject,
                    Message=message
                )
                self.logger.info(f"SNS通知发送成功，MessageId: {response.get('MessageId')}")
                return True

            except ClientError as e:
                error_code = e.response['Error']['Code']
                error_message = e.response['Error']['Message']

                if self._is_retryable_error(error_code) and attempt < max_retries:
                    wait_time = 2 ** attempt
                    self.logger.warning(
                        f"SNS发送失败 (尝试 {attempt + 1}/{max_retries + 1}) - {error_code}: {error_message}，"
                        f"{wait_time}秒后重试"
                    )
                    time.sleep(wait_time)
                    continue

                self.logger.error(f"SNS发送失败 - {error_code}: {error_message}")
                return False

            except BotoCoreError as e:
                self.logger.error(f"发送SNS通知时发生错误: {str(e)}")
                return False

        return False

    def _is_retryable_error(self, error_code: str) -> bool:
        return error_code in {'Throttling', 'ServiceUnavailable', 'InternalError', 'RequestTimeout'}

    def format_notification_content(self, results: List[CheckResult]) -> str:
        """
        格式化通知内容

        Args:
            results: 需要告警的检查结果

        Returns:
            str: 格式化的通知内容
        """
        if not results:
            return "所有SSL证书状态正常。"

        expired = [r for r in results if r.status == CheckStatus.EXPIRED]
        expiring = [r for r in results if r.status == CheckStatus.EXPIRING]
        failed = [r for r in results if r.status == CheckStatus.ERROR]

        lines = [
            "SSL证书过期监控报告",
            "=" * 30,
            f"检查时间: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')} UTC",
            ""
        ]

        if expired:
            lines.extend(["🚨 已过期证书:", ""])
            for result in expired:
                lines.append(f"• {result.host}:{result.port}")
                lines.append(f"  过期时间: {result.expires_at.strftime('%Y-%m-%d %H:%M:%S')}")
                lines.append("")

        if expiring:
            lines.extend(["⚠️  即将过期证书:", ""])
            for result in expiring:
                lines.append(f"• {result.host}:{result.port}")
                lines.append(f"  过期时间: {result.expires_at.strftime('%Y-%m-%d %H:%M:%S')}")
                lines.append(f"  剩余天数: {result.days_remaining} 天")
                if not result.chain_trusted:
                    lines.append("  信任链: 未通过默认信任库校验")
                lines.append("")

        if failed:
            lines.extend(["❌ 检查失败:", ""])
            for result in failed:
                lines.append(f"• {result.host}:{result.port}")
                lines.append(f"  错误: {result.error_message}")
                lines.append("")

        lines.append("此消息由SSL证书监控系统自动发送。")

        return "\n".join(lines)

    def _format_subject(self, results: List[CheckResult]) -> str:
        """
        格式化邮件主题

        Args:
            results: 需要告警的检查结果

        Returns:
            str: 邮件主题
        """
        expired_count = len([r for r in results if r.status == CheckStatus.EXPIRED])
        expiring_count = len([r for r in results if r.status == CheckStatus.EXPIRING])
        failed_count = len([r for r in results if r.status == CheckStatus.ERROR])

        if expired_count > 0 and expiring_count > 0:
            return f"🚨 SSL证书警报: {expired_count}个已过期, {expiring_count}个即将过期"
        elif expired_count > 0:
            return f"🚨 SSL证书警报: {expired_count}个证书已过期"
        elif expiring_count > 0:
            return f"⚠️ SSL证书提醒: {expiring_count}个证书即将过期"
        elif failed_count > 0:
            return f"❌ SSL证书检查失败: {failed_count}个域名"
        return "SSL证书状态报告"

    def _validate_configuration(self) -> bool:
        """
        验证配置是否正确

        Returns:
            bool: 配置是否有效
        """
        if not self.topic_arn:
            self.logger.warning("SNS主题ARN未配置，跳过通知发送")
            return False

        if not self.sns_client:
            self.logger.error("SNS客户端未初始化")
            return False

        return True

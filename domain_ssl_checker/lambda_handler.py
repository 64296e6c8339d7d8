"""
AWS Lambda函数入口点
"""
import base64
import json
import os
from dataclasses import asdict
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from .models import BulkItem, CheckerSettings, CheckResult
from .services.bulk_checker import BulkSSLChecker
from .services.config_validator import ConfigValidator
from .services.domain_config import DomainConfigManager
from .services.error_handler import ConfigurationError
from .services.expiry_calculator import ExpiryCalculator
from .services.logger import LoggerService
from .services.sns_notification import SNSNotificationService
from .services.ssl_checker import SSLExpiryChecker

EXPIRY_PATH = "/api/v1/ssl/expiry"
BULK_EXPIRY_PATH = "/api/v1/ssl/expiry/bulk"
DEFAULT_PORT = 443


class RequestValidationError(ValueError):
    """请求参数无效"""


class SSLCertificateMonitor:
    """SSL证书监控器主类"""

    def __init__(self, settings: Optional[CheckerSettings] = None):
        """
        初始化监控器

        Args:
            settings: 检查器配置，为None时从环境变量读取
        """
        self.logger_service = LoggerService()
        self.settings = settings or ConfigValidator().load_settings()
        self.checker = SSLExpiryChecker(self.settings)
        self.bulk_checker = BulkSSLChecker(
            self.checker,
            concurrency_limit=self.settings.bulk_concurrency,
            overall_timeout_ms=self.settings.bulk_timeout_ms
        )
        self.domain_manager = DomainConfigManager()
        self.notification_service = SNSNotificationService()
        self.expiry_calculator = ExpiryCalculator(expiring_days=self.settings.expiring_days)

        self._log_configuration()

    def _log_configuration(self):
        """记录系统配置信息"""
        config = asdict(self.settings)
        config.update({
            'sns_topic_arn': os.getenv('SNS_TOPIC_ARN', ''),
            'log_level': os.getenv('LOG_LEVEL', 'INFO')
        })
        self.logger_service.log_configuration_info(config)

    def handle_http_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """
        处理API Gateway请求

        Args:
            event: API Gateway代理事件（REST或HTTP API格式）

        Returns:
            Dict[str, Any]: API Gateway响应
        """
        method = (event.get('httpMethod')
                  or event.get('requestContext', {}).get('http', {}).get('method', '')).upper()
        path = (event.get('path') or event.get('rawPath') or '').rstrip('/')

        try:
            if path == EXPIRY_PATH and method == 'GET':
                params = event.get('queryStringParameters') or {}
                host = self._require_text(params, 'host')
                port = self._parse_port(params.get('port'))
                return _json_response(200, self.checker.check(host, port).to_dict())

            if path == EXPIRY_PATH and method == 'POST':
                return _json_response(200, self._handle_post_expiry(_parse_body(event)).to_dict())

            if path == BULK_EXPIRY_PATH and method == 'POST':
                items = self._parse_bulk_items(_parse_body(event))
                results = self.bulk_checker.check_bulk(items)
                return _json_response(200, [result.to_dict() for result in results])

        except RequestValidationError as e:
            self.logger_service.logger.warning(f"请求参数无效: {str(e)}")
            return _json_response(400, {'message': str(e)})

        return _json_response(404, {'message': f'No route for {method} {path}'})

    def _handle_post_expiry(self, body: Any) -> CheckResult:
        if not isinstance(body, dict):
            raise RequestValidationError("Request body must be a JSON object")

        host = self._require_text(body, 'host')
        port = self._parse_port(body.get('port'))
        fallback_ip = body.get('fallback_ip')
        resolve_dns = body.get('resolve_dns')

        if fallback_ip is not None and not isinstance(fallback_ip, str):
            raise RequestValidationError("fallback_ip must be a string")
        if resolve_dns is not None and not isinstance(resolve_dns, bool):
            raise RequestValidationError("resolve_dns must be a boolean")

        if fallback_ip or resolve_dns:
            return self.checker.check_with_fallback(host, port, fallback_ip, bool(resolve_dns))
        return self.checker.check(host, port)

    def _parse_bulk_items(self, body: Any) -> List[BulkItem]:
        if not isinstance(body, list):
            raise RequestValidationError("Request body must be a JSON array")
        if len(body) > self.settings.bulk_max_items:
            raise RequestValidationError(
                f"At most {self.settings.bulk_max_items} items are allowed, got {len(body)}"
            )

        items = []
        for index, raw in enumerate(body):
            if not isinstance(raw, dict):
                raise RequestValidationError(f"Item {index} must be a JSON object")
            try:
                client_ip = raw.get('client_ip')
                if client_ip is not None and not isinstance(client_ip, str):
                    raise RequestValidationError("client_ip must be a string")
                items.append(BulkItem(
                    client_name=self._require_text(raw, 'client_name'),
                    client_domain=self._require_text(raw, 'client_domain'),
                    port=self._parse_port(raw.get('port')),
                    client_ip=client_ip
                ))
            except RequestValidationError as e:
                raise RequestValidationError(f"Item {index}: {e}") from e
        return items

    @staticmethod
    def _require_text(data: Dict[str, Any], field: str) -> str:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise RequestValidationError(f"{field} must not be blank")
        return value.strip()

    @staticmethod
    def _parse_port(value: Any) -> int:
        if value is None or value == '':
            return DEFAULT_PORT
        if isinstance(value, bool):
            raise RequestValidationError("port must be an integer")
        if isinstance(value, str) and value.strip().isdecimal():
            value = int(value.strip())
        if not isinstance(value, int):
            raise RequestValidationError("port must be an integer")
        if not 1 <= value <= 65535:
            raise RequestValidationError("port must be between 1 and 65535")
        return value

    def execute(self) -> Dict[str, Any]:
        """
        执行定时检查：批量检查 DOMAINS 中的域名并发送告警

        Returns:
            Dict[str, Any]: 执行摘要
        """
        self.logger_service.reset_stats()
        items = self.domain_manager.get_items()

        if not items:
            self.logger_service.logger.warning("没有找到要检查的域名")
            return {'total_domains': 0, 'errors': ["没有找到要检查的域名"]}

        self.logger_service.log_check_start(len(items))
        bulk_results = self.bulk_checker.check_bulk(items)
        results = [bulk.result for bulk in bulk_results]
        self.logger_service.log_results(results)

        categorized = self.expiry_calculator.categorize_results(results)
        notification_sent = self._send_notifications(categorized)

        self.logger_service.log_check_end()
        self.logger_service.logger.info(self.expiry_calculator.get_expiry_summary(results))

        summary = self.logger_service.get_execution_summary()
        return {
            'total_domains': summary['total_domains'],
            'successful_checks': summary['successful_checks'],
            'failed_checks': summary['failed_checks'],
            'expired_domains': [r.host for r in categorized['expired']],
            'expiring_domains': [r.host for r in categorized['expiring']],
            'notification_sent': notification_sent,
            'execution_time_seconds': summary['duration_seconds'],
            'errors': [r.error_message for r in categorized['failed']][:5],
            'results': [bulk.to_dict() for bulk in bulk_results]
        }

    def _send_notifications(self, categorized: Dict[str, List[CheckResult]]) -> bool:
        """
        发送告警通知

        Args:
            categorized: 分类后的检查结果

        Returns:
            bool: 通知是否发送成功
        """
        alerts = categorized['expired'] + categorized['expiring'] + categorized['failed']
        if not alerts:
            self.logger_service.logger.info("所有证书状态正常，无需发送通知")
            return True

        sent = self.notification_service.send_expiry_notification(alerts)
        self.logger_service.log_notification_sent("SNS", len(alerts), sent)
        return sent


def _parse_body(event: Dict[str, Any]) -> Any:
    body = event.get('body')
    if body is None or body == '':
        raise RequestValidationError("Request body is required")
    if event.get('isBase64Encoded'):
        body = base64.b64decode(body).decode('utf-8')
    try:
        return json.loads(body)
    except ValueError as e:
        raise RequestValidationError(f"Malformed JSON body: {e}") from e


def _json_response(status_code: int, payload: Any) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(payload, ensure_ascii=False)
    }


_monitor: Optional[SSLCertificateMonitor] = None


def get_monitor() -> SSLCertificateMonitor:
    """返回进程内共享的监控器，线程池在多次调用间复用"""
    global _monitor
    if _monitor is None:
        _monitor = SSLCertificateMonitor()
    return _monitor


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda函数入口点

    Args:
        event: API Gateway请求事件或EventBridge定时事件
        context: Lambda运行时上下文

    Returns:
        dict: API Gateway响应或定时检查摘要
    """
    is_http = bool(event.get('httpMethod') or event.get('rawPath'))

    try:
        monitor = get_monitor()
    except ConfigurationError as e:
        LoggerService().logger.error(f"配置无效: {str(e)}")
        body = {'message': 'Invalid SSL checker configuration', 'error': str(e)}
        if is_http:
            return _json_response(500, body)
        return {'statusCode': 500, 'body': body}

    if is_http:
        try:
            return monitor.handle_http_event(event)
        except Exception as e:
            monitor.logger_service.logger.exception(f"处理请求时发生未预期错误: {str(e)}")
            return _json_response(500, {'message': 'Internal error while performing SSL check'})

    try:
        summary = monitor.execute()
    except Exception as e:
        monitor.logger_service.logger.exception(f"定时检查时发生严重错误: {str(e)}")
        return {
            'statusCode': 500,
            'body': {
                'message': 'SSL Certificate Monitor encountered a critical error',
                'error': str(e),
                'timestamp': datetime.now(timezone.utc).isoformat()
            }
        }

    status_code = 500 if summary['total_domains'] == 0 else 200
    summary['message'] = (
        'SSL Certificate Monitor executed successfully' if status_code == 200
        else 'SSL Certificate Monitor failed to execute'
    )
    summary['timestamp'] = datetime.now(timezone.utc).isoformat()
    return {'statusCode': status_code, 'body': summary}

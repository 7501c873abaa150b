"""告警分发器"""

import asyncio
from typing import Any, Dict, List, Optional, Set

from .base import BaseAlerter
from .email_alerter import EmailAlerter
from .webhook_alerter import WebhookAlerter
from ..models.health_check import Alert
from ..services.config_manager import MonitorConfig
from ..utils.event_log import EventLog
from ..utils.exceptions import AlertConfigError
from ..utils.log_manager import get_logger


def create_alerters(config: MonitorConfig) -> List[BaseAlerter]:
    """
    根据配置创建告警通道

    Args:
        config: 监控配置

    Returns:
        List[BaseAlerter]: 已配置的告警器，未配置任何通道时为空列表

    Raises:
        AlertConfigError: 告警通道配置无效
    """
    alerters: List[BaseAlerter] = []

    if config.alert_email:
        alerters.append(EmailAlerter('email', {
            'smtp_server': config.smtp_server,
            'smtp_port': config.smtp_port,
            'username': config.smtp_username,
            'password': config.smtp_password,
            'use_tls': config.smtp_use_tls,
            'from_email': config.smtp_from,
            'to_emails': [config.alert_email],
            'timeout': config.alert_timeout
        }))

    if config.alert_webhook:
        alerters.append(WebhookAlerter('webhook', {
            'url': config.alert_webhook,
            'timeout': config.alert_timeout
        }))

    return alerters


class AlertDispatcher:
    """告警分发器

    先写持久化事件日志，再独立地尝试每个告警通道。
    单次分发中每个通道最多尝试一次，不做重试。
    """

    def __init__(self, event_log: EventLog, alerters: Optional[List[BaseAlerter]] = None,
                 timeout: float = 10):
        """
        初始化告警分发器

        Args:
            event_log: 持久化事件日志
            alerters: 告警通道列表
            timeout: 单个通道的发送超时（秒）
        """
        self.event_log = event_log
        self.alerters: List[BaseAlerter] = []
        self.timeout = timeout
        self.logger = get_logger('alert_dispatcher')

        for alerter in alerters or []:
            self.add_alerter(alerter)

    def add_alerter(self, alerter: BaseAlerter):
        """
        添加告警器

        Args:
            alerter: 告警器实例
        """
        if not isinstance(alerter, BaseAlerter):
            raise AlertConfigError(f"告警器必须继承自BaseAlerter: {type(alerter)}")

        self.alerters.append(alerter)
        self.logger.info(f"已添加告警器: {alerter.name} ({alerter.alerter_type})")

    def get_alerter_names(self) -> List[str]:
        return [alerter.name for alerter in self.alerters]

    @staticmethod
    def format_log_message(alert: Alert) -> str:
        return f"{alert.subject} - {alert.body}"

    async def dispatch(self, alert: Alert) -> Set[str]:
        """
        分发一条告警

        Args:
            alert: 告警消息

        Returns:
            Set[str]: 发送失败的通道名称
        """
        # 日志写入失败不影响通道发送
        self.event_log.write(alert.severity.value, self.format_log_message(alert),
                             alert.timestamp.astimezone())

        if not self.alerters:
            self.logger.debug("没有配置告警通道，告警仅写入日志")
            return set()

        results = await asyncio.gather(
            *(self._send_to_alerter(alerter, alert) for alerter in self.alerters)
        )
        return self._collect_failures(results, alert)

    async def _send_to_alerter(self, alerter: BaseAlerter, alert: Alert) -> Dict[str, Any]:
        """
        向单个告警器发送消息

        Args:
            alerter: 告警器实例
            alert: 告警消息

        Returns:
            Dict[str, Any]: 发送结果
        """
        try:
            success = await asyncio.wait_for(alerter.send_alert(alert), timeout=self.timeout)
            return {'alerter': alerter.name, 'success': bool(success), 'error': None}
        except asyncio.TimeoutError:
            self.logger.error(f"告警器 {alerter.name} 发送超时 ({self.timeout}s)")
            return {'alerter': alerter.name, 'success': False, 'error': '发送超时'}
        except Exception as e:
            self.logger.error(f"告警器 {alerter.name} 发送失败: {e}")
            return {'alerter': alerter.name, 'success': False, 'error': str(e)}

    def _collect_failures(self, results: List[Dict[str, Any]], alert: Alert) -> Set[str]:
        failed = {result['alerter'] for result in results if not result['success']}
        success_count = len(results) - len(failed)

        if success_count > 0:
            self.logger.info(
                f"告警发送成功 {success_count}/{len(results)} 个告警器 "
                f"([{alert.severity.value}] {alert.subject})"
            )

        if failed:
            self.logger.warning(
                f"以下告警器发送失败: {', '.join(sorted(failed))} "
                f"([{alert.severity.value}] {alert.subject})"
            )

        return failed

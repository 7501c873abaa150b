"""Webhook告警器实现"""

import asyncio
from typing import Dict, Any
from urllib.parse import urlparse

import aiohttp

from .base import BaseAlerter
from ..models.health_check import Alert
from ..utils.exceptions import AlertConfigError, DispatchFailedError
from ..utils.log_manager import get_logger


class WebhookAlerter(BaseAlerter):
    """Webhook告警器，以 ``{"text": ...}`` JSON 负载POST告警消息"""

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        初始化Webhook告警器

        Args:
            name: 告警器名称
            config: 告警器配置，包含 url、可选的 headers 和 timeout
        """
        super().__init__(name, config)
        self.logger = get_logger(f'alerter.webhook.{self.name}')

        self.url = config.get('url', '')
        self.headers = config.get('headers', {})

        if not self.validate_config():
            raise AlertConfigError(f"Webhook告警器配置无效: {name}", alert_name=name)

    def validate_config(self) -> bool:
        """
        验证配置参数是否有效

        Returns:
            bool: 配置是否有效
        """
        if not self.url:
            self.logger.error(f"Webhook告警器 {self.name} 缺少URL配置")
            return False

        parsed_url = urlparse(self.url)
        if parsed_url.scheme not in ('http', 'https') or not parsed_url.netloc:
            self.logger.error(f"Webhook告警器 {self.name} URL格式无效: {self.url}")
            return False

        return True

    def create_payload(self, alert: Alert) -> Dict[str, Any]:
        """
        创建JSON负载

        Args:
            alert: 告警消息

        Returns:
            Dict[str, Any]: JSON负载
        """
        return {'text': alert.full_message}

    async def send_alert(self, alert: Alert) -> bool:
        """
        发送告警消息

        Args:
            alert: 告警消息对象

        Returns:
            bool: 发送是否成功

        Raises:
            DispatchFailedError: 网络错误或超时
        """
        self.logger.debug(f"发送Webhook告警: [{alert.severity.value}] {alert.subject}")

        timeout = aiohttp.ClientTimeout(total=self.get_timeout())
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.url, json=self.create_payload(alert),
                                        headers=self.headers) as response:
                    if 200 <= response.status < 300:
                        self.logger.info(f"告警已发送到Webhook (状态码: {response.status})")
                        return True

                    response_text = await response.text()
                    self.logger.warning(
                        f"Webhook告警器 {self.name} 收到错误响应 "
                        f"(状态码: {response.status}, 响应: {response_text[:200]})"
                    )
                    return False

        except aiohttp.ClientError as e:
            self.logger.error(f"Webhook告警器 {self.name} 网络请求失败: {e}")
            raise DispatchFailedError(f"Webhook请求失败: {e}", alert_name=self.name, cause=e)
        except asyncio.TimeoutError:
            self.logger.error(f"Webhook告警器 {self.name} 请求超时")
            raise DispatchFailedError("Webhook请求超时", alert_name=self.name)

    def get_config_summary(self) -> Dict[str, Any]:
        """获取配置摘要"""
        return {
            'name': self.name,
            'type': 'webhook',
            'url': self.url,
            'timeout': self.get_timeout(),
            'headers_count': len(self.headers)
        }

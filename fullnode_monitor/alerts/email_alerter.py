"""邮件告警器实现"""

import re
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr
from typing import Dict, Any

import aiosmtplib

from .base import BaseAlerter
from ..models.health_check import Alert
from ..utils.exceptions import AlertConfigError, DispatchFailedError
from ..utils.log_manager import get_logger

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+(\.[a-zA-Z]{2,})?$'


class EmailAlerter(BaseAlerter):
    """邮件告警器，通过SMTP协议发送邮件告警"""

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        初始化邮件告警器

        Args:
            name: 告警器名称
            config: 告警器配置
        """
        super().__init__(name, config)
        self.logger = get_logger(f'alerter.email.{self.name}')

        # SMTP配置
        self.smtp_server = config.get('smtp_server', 'localhost')
        self.smtp_port = config.get('smtp_port', 25)
        self.username = config.get('username')
        self.password = config.get('password')
        self.use_tls = config.get('use_tls', False)

        # 邮件配置
        self.from_email = config.get('from_email', '')
        self.from_name = config.get('from_name', '全节点监控系统')
        self.to_emails = config.get('to_emails', [])

        if not self.validate_config():
            raise AlertConfigError(f"邮件告警器配置无效: {name}", alert_name=name)

    def validate_config(self) -> bool:
        """
        验证配置参数是否有效

        Returns:
            bool: 配置是否有效
        """
        if not self.smtp_server:
            self.logger.error(f"邮件告警器 {self.name} 缺少SMTP服务器配置")
            return False

        if not self.from_email:
            self.logger.error(f"邮件告警器 {self.name} 缺少发件人邮箱配置")
            return False

        if not self.to_emails:
            self.logger.error(f"邮件告警器 {self.name} 缺少收件人邮箱配置")
            return False

        for email in self.to_emails + [self.from_email]:
            if not self._is_valid_email(email):
                self.logger.error(f"邮件告警器 {self.name} 邮箱格式无效: {email}")
                return False

        if not isinstance(self.smtp_port, int) or self.smtp_port <= 0:
            self.logger.error(f"邮件告警器 {self.name} SMTP端口无效: {self.smtp_port}")
            return False

        if bool(self.username) != bool(self.password):
            self.logger.error(f"邮件告警器 {self.name} 用户名和密码必须同时配置")
            return False

        return True

    @staticmethod
    def _is_valid_email(email: str) -> bool:
        return re.match(EMAIL_PATTERN, email) is not None

    @staticmethod
    def format_subject(alert: Alert) -> str:
        return f"[{alert.severity.value}] Fullnode Alert: {alert.subject}"

    def create_email_message(self, alert: Alert) -> MIMEMultipart:
        """
        创建邮件消息

        Args:
            alert: 告警消息

        Returns:
            MIMEMultipart: 邮件消息对象
        """
        email_msg = MIMEMultipart()
        email_msg['From'] = formataddr((self.from_name, self.from_email))
        email_msg['To'] = ', '.join(self.to_emails)
        email_msg['Subject'] = self.format_subject(alert)
        email_msg.attach(MIMEText(alert.full_message, 'plain', 'utf-8'))
        return email_msg

    async def send_alert(self, alert: Alert) -> bool:
        """
        发送告警邮件

        Args:
            alert: 告警消息对象

        Returns:
            bool: 发送是否成功

        Raises:
            DispatchFailedError: SMTP发送失败
        """
        email_msg = self.create_email_message(alert)

        smtp_kwargs = {
            'hostname': self.smtp_server,
            'port': self.smtp_port,
            'timeout': self.get_timeout(),
            'start_tls': bool(self.use_tls)
        }
        if self.username:
            smtp_kwargs['username'] = self.username
            smtp_kwargs['password'] = self.password

        try:
            await aiosmtplib.send(email_msg, **smtp_kwargs)
        except (aiosmtplib.SMTPException, OSError) as e:
            self.logger.error(f"SMTP发送失败: {e}")
            raise DispatchFailedError(f"SMTP发送失败: {e}", alert_name=self.name, cause=e)

        self.logger.info(f"告警邮件已发送到: {', '.join(self.to_emails)}")
        return True

    def get_config_summary(self) -> Dict[str, Any]:
        """获取配置摘要"""
        return {
            'name': self.name,
            'type': 'email',
            'smtp_server': self.smtp_server,
            'smtp_port': self.smtp_port,
            'from_email': self.from_email,
            'to_emails_count': len(self.to_emails),
            'use_tls': self.use_tls,
            'timeout': self.get_timeout()
        }

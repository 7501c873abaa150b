"""邮件告警器测试"""

from datetime import datetime
from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from fullnode_monitor.alerts.email_alerter import EmailAlerter
from fullnode_monitor.models.health_check import Alert, Severity
from fullnode_monitor.utils.exceptions import AlertConfigError, DispatchFailedError

SMTP_SEND = 'fullnode_monitor.alerts.email_alerter.aiosmtplib.send'


class TestEmailAlerter:
    """邮件告警器测试类"""

    def setup_method(self):
        self.config = {
            'smtp_server': 'smtp.example.com',
            'smtp_port': 587,
            'username': 'monitor',
            'password': 'secret',
            'use_tls': True,
            'from_email': 'fullnode-monitor@node-1',
            'to_emails': ['ops@example.com'],
            'timeout': 5
        }
        self.alert = Alert(
            severity=Severity.CRITICAL,
            subject='服务停止',
            body='服务 sui-fullnode 未运行 (状态: failed/failed)',
            hostname='node-1',
            timestamp=datetime(2024, 1, 1, 12, 0, 0)
        )

    def test_init_valid_config(self):
        alerter = EmailAlerter('email', self.config)

        assert alerter.smtp_server == 'smtp.example.com'
        assert alerter.to_emails == ['ops@example.com']
        assert alerter.alerter_type == 'email'

    def test_init_missing_recipients(self):
        config = dict(self.config, to_emails=[])

        with pytest.raises(AlertConfigError):
            EmailAlerter('email', config)

    def test_init_invalid_recipient(self):
        config = dict(self.config, to_emails=['not-an-email'])

        with pytest.raises(AlertConfigError):
            EmailAlerter('email', config)

    def test_username_requires_password(self):
        config = dict(self.config, password=None)

        with pytest.raises(AlertConfigError):
            EmailAlerter('email', config)

    def test_format_subject(self):
        assert EmailAlerter.format_subject(self.alert) == '[CRITICAL] Fullnode Alert: 服务停止'

    def test_create_email_message(self):
        message = EmailAlerter('email', self.config).create_email_message(self.alert)

        assert message['To'] == 'ops@example.com'
        assert 'fullnode-monitor@node-1' in message['From']
        body = message.get_payload()[0].get_payload(decode=True).decode('utf-8')
        assert '服务 sui-fullnode 未运行' in body

    @pytest.mark.asyncio
    async def test_send_alert(self):
        alerter = EmailAlerter('email', self.config)

        with patch(SMTP_SEND, new_callable=AsyncMock) as mock_send:
            assert await alerter.send_alert(self.alert) is True

        mock_send.assert_awaited_once()
        kwargs = mock_send.call_args.kwargs
        assert kwargs['hostname'] == 'smtp.example.com'
        assert kwargs['port'] == 587
        assert kwargs['start_tls'] is True
        assert kwargs['username'] == 'monitor'
        assert kwargs['password'] == 'secret'

    @pytest.mark.asyncio
    async def test_send_without_auth(self):
        config = dict(self.config, username=None, password=None, use_tls=False)
        alerter = EmailAlerter('email', config)

        with patch(SMTP_SEND, new_callable=AsyncMock) as mock_send:
            await alerter.send_alert(self.alert)

        kwargs = mock_send.call_args.kwargs
        assert 'username' not in kwargs
        assert kwargs['start_tls'] is False

    @pytest.mark.asyncio
    async def test_send_failure(self):
        alerter = EmailAlerter('email', self.config)
        error = aiosmtplib.SMTPConnectError('connection refused')

        with patch(SMTP_SEND, new_callable=AsyncMock, side_effect=error) as mock_send:
            with pytest.raises(DispatchFailedError):
                await alerter.send_alert(self.alert)

        assert mock_send.await_count == 1

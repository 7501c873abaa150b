"""异常类测试"""

from fullnode_monitor.utils.exceptions import (AlertConfigError, ConfigError, ConfigMissingError,
                                               DispatchFailedError, ErrorCode,
                                               LogWriteFailedError, MonitorError,
                                               ProbeUnavailableError)


class TestMonitorError:
    """基础异常测试"""

    def test_defaults(self):
        error = MonitorError("出错了")

        assert error.message == "出错了"
        assert error.error_code is ErrorCode.UNKNOWN_ERROR
        assert error.details == {}
        assert error.recoverable is True

    def test_to_dict(self):
        cause = ValueError("bad value")
        error = MonitorError("解析失败", ErrorCode.VALIDATION_ERROR,
                             details={'field': 'x'}, cause=cause)

        data = error.to_dict()
        assert data['error_code'] == ErrorCode.VALIDATION_ERROR.value
        assert data['error_name'] == 'VALIDATION_ERROR'
        assert data['details'] == {'field': 'x'}
        assert data['cause'] == 'bad value'

    def test_format_error(self):
        error = MonitorError("解析失败", details={'field': 'x'}, cause=ValueError("bad"))

        formatted = error.format_error()
        assert formatted.startswith("[UNKNOWN_ERROR] 解析失败")
        assert "field=x" in formatted
        assert "原因: bad" in formatted


class TestSubclasses:
    """异常子类测试"""

    def test_config_error_is_fatal(self):
        error = ConfigError("无效配置", config_path="/etc/monitor.yaml")

        assert error.recoverable is False
        assert error.error_code is ErrorCode.CONFIG_VALIDATION_ERROR
        assert error.details['config_path'] == "/etc/monitor.yaml"

    def test_config_missing_is_recoverable(self):
        error = ConfigMissingError("配置文件不存在", config_path="missing.yaml")

        assert isinstance(error, ConfigError)
        assert error.recoverable is True
        assert error.error_code is ErrorCode.CONFIG_FILE_NOT_FOUND

    def test_probe_unavailable(self):
        error = ProbeUnavailableError("命令不存在", ErrorCode.COMMAND_NOT_FOUND,
                                      probe_name="service_active")

        assert error.error_code is ErrorCode.COMMAND_NOT_FOUND
        assert error.details['probe_name'] == "service_active"

    def test_alert_errors(self):
        config_error = AlertConfigError("配置无效", alert_name="email")
        dispatch_error = DispatchFailedError("发送失败", alert_name="webhook")

        assert config_error.recoverable is False
        assert config_error.error_code is ErrorCode.ALERT_CONFIG_ERROR
        assert dispatch_error.recoverable is True
        assert dispatch_error.details['alert_name'] == "webhook"

    def test_log_write_failed(self):
        error = LogWriteFailedError("写入失败", log_path="/var/log/x.log",
                                    details={'errno': 13})

        assert error.error_code is ErrorCode.LOG_WRITE_ERROR
        assert error.details == {'errno': 13, 'log_path': "/var/log/x.log"}

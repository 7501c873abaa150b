"""配置验证器测试"""

import pytest

from fullnode_monitor.utils.config_validator import ConfigValidator
from fullnode_monitor.utils.exceptions import ConfigError


class TestConfigValidator:
    """配置验证器测试类"""

    def test_valid_config(self):
        ConfigValidator.validate({
            'alert_email': 'ops@example.com',
            'alert_webhook': 'https://hooks.example.com/x',
            'disk_threshold': 80,
            'pass_rate_floor': 0.8,
            'error_log_threshold': 0,
            'check_interval': 300,
            'smtp_port': 587,
            'smtp_use_tls': True,
            'log_level': 'debug'
        })

    def test_empty_config(self):
        ConfigValidator.validate({})

    @pytest.mark.parametrize('key', ['disk_threshold', 'check_interval', 'probe_timeout'])
    @pytest.mark.parametrize('value', [0, -5, 'abc', True, float('nan'), float('inf')])
    def test_non_positive_numbers(self, key, value):
        with pytest.raises(ConfigError):
            ConfigValidator.validate({key: value})

    def test_negative_error_threshold(self):
        with pytest.raises(ConfigError):
            ConfigValidator.validate({'error_log_threshold': -1})

    def test_non_finite_error_threshold(self):
        with pytest.raises(ConfigError):
            ConfigValidator.validate({'checkpoint_lag_threshold': float('inf')})

    @pytest.mark.parametrize('floor', [-0.1, 1.01, '0.8'])
    def test_pass_rate_floor_range(self, floor):
        with pytest.raises(ConfigError):
            ConfigValidator.validate({'pass_rate_floor': floor})

    def test_pass_rate_floor_bounds_allowed(self):
        ConfigValidator.validate({'pass_rate_floor': 0})
        ConfigValidator.validate({'pass_rate_floor': 1})

    @pytest.mark.parametrize('url', ['ftp://example.com', 'localhost:9000', 123])
    def test_invalid_urls(self, url):
        with pytest.raises(ConfigError):
            ConfigValidator.validate({'rpc_url': url})

    def test_invalid_email(self):
        with pytest.raises(ConfigError):
            ConfigValidator.validate({'alert_email': 'not-an-email'})

    @pytest.mark.parametrize('port', [70000, 0, True, '25'])
    def test_invalid_port(self, port):
        with pytest.raises(ConfigError):
            ConfigValidator.validate({'smtp_port': port})

    def test_invalid_tls_flag(self):
        with pytest.raises(ConfigError):
            ConfigValidator.validate({'smtp_use_tls': 'yes'})

    def test_invalid_log_level(self):
        with pytest.raises(ConfigError):
            ConfigValidator.validate({'log_level': 'VERBOSE'})

    def test_string_fields(self):
        with pytest.raises(ConfigError):
            ConfigValidator.validate({'service_name': 42})

"""配置验证工具"""

import math
from typing import Dict, Any
from urllib.parse import urlparse

from .exceptions import ConfigError


class ConfigValidator:
    """配置验证器"""

    POSITIVE_NUMBERS = ['disk_threshold', 'memory_threshold', 'cpu_threshold',
                        'probe_timeout', 'alert_timeout', 'check_interval',
                        'cpu_sample_interval', 'error_log_window']
    NON_NEGATIVE_NUMBERS = ['error_log_threshold', 'checkpoint_lag_threshold']
    URLS = ['alert_webhook', 'rpc_url', 'reference_rpc_url', 'metrics_url',
            'network_check_url']
    STRINGS = ['service_name', 'rpc_method', 'metrics_prefix', 'data_path',
               'node_binary', 'log_file', 'app_log_file', 'smtp_server',
               'smtp_username', 'smtp_password', 'smtp_from']

    @staticmethod
    def _is_number(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    @classmethod
    def _is_finite_number(cls, value: Any) -> bool:
        return cls._is_number(value) and math.isfinite(value)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        验证扁平键值配置

        Args:
            config: 配置字典

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(config, dict):
            raise ConfigError("配置文件根节点必须是字典类型")

        for key in cls.POSITIVE_NUMBERS:
            value = config.get(key)
            if value is not None and (not cls._is_finite_number(value) or value <= 0):
                raise ConfigError(f"{key} 必须是正数: {value!r}")

        for key in cls.NON_NEGATIVE_NUMBERS:
            value = config.get(key)
            if value is not None and (not cls._is_finite_number(value) or value < 0):
                raise ConfigError(f"{key} 必须是非负数: {value!r}")

        floor = config.get('pass_rate_floor')
        if floor is not None and (not cls._is_number(floor) or not 0 <= floor <= 1):
            raise ConfigError(f"pass_rate_floor 必须在 0 到 1 之间: {floor!r}")

        for key in cls.URLS:
            value = config.get(key)
            if value is not None:
                cls.validate_url(key, value)

        for key in cls.STRINGS:
            value = config.get(key)
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"{key} 必须是字符串: {value!r}")

        email = config.get('alert_email')
        if email is not None and (not isinstance(email, str) or '@' not in email):
            raise ConfigError(f"alert_email 格式无效: {email!r}")

        port = config.get('smtp_port')
        if port is not None and (not isinstance(port, int) or isinstance(port, bool)
                                 or not 0 < port < 65536):
            raise ConfigError(f"smtp_port 必须是有效端口: {port!r}")

        use_tls = config.get('smtp_use_tls')
        if use_tls is not None and not isinstance(use_tls, bool):
            raise ConfigError("smtp_use_tls 必须是布尔值")

        log_level = config.get('log_level')
        if log_level is not None:
            valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
            if str(log_level).upper() not in valid_levels:
                raise ConfigError(f"log_level 必须是以下值之一: {valid_levels}")

    @staticmethod
    def validate_url(key: str, value: Any) -> None:
        """
        验证HTTP(S) URL

        Raises:
            ConfigError: URL格式无效
        """
        if not isinstance(value, str):
            raise ConfigError(f"{key} 必须是字符串")
        parsed = urlparse(value)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ConfigError(f"{key} 不是有效的HTTP(S) URL: {value}")

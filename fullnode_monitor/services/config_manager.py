"""配置管理器

配置只在启动时加载一次，生成只读的 MonitorConfig 对象传入各组件。
"""

import os
import re
import socket
from dataclasses import dataclass, fields
from typing import Dict, Any, Optional, Tuple

import yaml

from ..models.health_check import Comparison, ThresholdConfig
from ..utils.config_validator import ConfigValidator
from ..utils.exceptions import ConfigError, ConfigMissingError, ErrorCode
from ..utils.log_manager import get_logger

DEFAULT_CONFIG_PATH = 'config/monitor.yaml'

# 所有默认值集中在这里
DEFAULTS: Dict[str, Any] = {
    'alert_email': None,
    'alert_webhook': None,
    'disk_threshold': 80,
    'memory_threshold': 80,
    'cpu_threshold': 90,
    'pass_rate_floor': 0.80,
    'error_log_threshold': 0,
    'checkpoint_lag_threshold': 100,
    'service_name': 'sui-fullnode',
    'rpc_url': 'http://localhost:9000',
    'rpc_method': 'sui_getLatestCheckpointSequenceNumber',
    'reference_rpc_url': None,
    'metrics_url': 'http://localhost:9184/metrics',
    'metrics_prefix': 'sui_',
    'data_path': '/opt/sui/db',
    'node_binary': '/opt/sui/bin/sui-node',
    'network_check_url': 'https://checkpoints.mainnet.sui.io',
    'probe_timeout': 10,
    'cpu_sample_interval': 1.0,
    'error_log_window': 3600,
    'alert_timeout': 10,
    'check_interval': 300,
    'log_file': '/var/log/sui-monitor.log',
    'app_log_file': None,
    'log_level': 'INFO',
    'smtp_server': 'localhost',
    'smtp_port': 25,
    'smtp_username': None,
    'smtp_password': None,
    'smtp_from': None,
    'smtp_use_tls': False,
}


def default_sender() -> str:
    """根据主机名生成默认发件人，主机名不能用作邮件域时退回 localhost"""
    hostname = socket.gethostname()
    if not re.match(r'^[a-zA-Z0-9.-]+$', hostname):
        hostname = 'localhost'
    return f"fullnode-monitor@{hostname}"


@dataclass(frozen=True)
class MonitorConfig:
    """监控进程的只读配置"""
    alert_email: Optional[str]
    alert_webhook: Optional[str]
    disk_threshold: float
    memory_threshold: float
    cpu_threshold: float
    pass_rate_floor: float
    error_log_threshold: float
    checkpoint_lag_threshold: float
    service_name: str
    rpc_url: str
    rpc_method: str
    reference_rpc_url: Optional[str]
    metrics_url: str
    metrics_prefix: str
    data_path: str
    node_binary: str
    network_check_url: str
    probe_timeout: float
    cpu_sample_interval: float
    error_log_window: float
    alert_timeout: float
    check_interval: float
    log_file: str
    app_log_file: Optional[str]
    log_level: str
    smtp_server: str
    smtp_port: int
    smtp_username: Optional[str]
    smtp_password: Optional[str]
    smtp_from: Optional[str]
    smtp_use_tls: bool

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'MonitorConfig':
        """以默认值为底合并配置项"""
        merged = dict(DEFAULTS)
        merged.update({k: v for k, v in values.items() if k in DEFAULTS})
        if merged['smtp_from'] is None:
            merged['smtp_from'] = default_sender()
        merged['log_level'] = str(merged['log_level']).upper()
        return cls(**{f.name: merged[f.name] for f in fields(cls)})

    @classmethod
    def defaults(cls) -> 'MonitorConfig':
        return cls.from_dict({})

    def thresholds(self) -> Dict[str, ThresholdConfig]:
        """按指标名生成阈值表"""
        entries = [
            ThresholdConfig('disk_usage', float(self.disk_threshold), Comparison.GREATER_THAN),
            ThresholdConfig('memory_usage', float(self.memory_threshold), Comparison.GREATER_THAN),
            ThresholdConfig('cpu_usage', float(self.cpu_threshold), Comparison.GREATER_THAN),
            ThresholdConfig('error_logs', float(self.error_log_threshold), Comparison.GREATER_THAN),
            ThresholdConfig('sync_status', float(self.checkpoint_lag_threshold),
                            Comparison.GREATER_THAN),
        ]
        return {entry.metric: entry for entry in entries}

    def to_dict(self) -> Dict[str, Any]:
        """导出配置，隐藏密码"""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if data.get('smtp_password'):
            data['smtp_password'] = '******'
        return data


class ConfigManager:
    """配置管理器，负责YAML配置文件的加载、解析和验证"""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        """
        初始化配置管理器

        Args:
            config_path: 配置文件路径
        """
        self.config_path = config_path
        self.config: Optional[MonitorConfig] = None
        self.logger = get_logger('config_manager')

    def read_file(self) -> Dict[str, Any]:
        """
        读取并解析YAML配置文件

        Returns:
            Dict[str, Any]: 原始配置字典

        Raises:
            ConfigMissingError: 配置文件不存在
            ConfigError: 配置文件无法读取或格式错误
        """
        if not os.path.exists(self.config_path):
            raise ConfigMissingError(f"配置文件不存在: {self.config_path}",
                                     config_path=self.config_path)

        try:
            with open(self.config_path, 'r', encoding='utf-8') as file:
                raw = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML格式错误: {e}", ErrorCode.CONFIG_PARSE_ERROR,
                              config_path=self.config_path, cause=e)
        except PermissionError as e:
            raise ConfigError(f"没有权限读取配置文件: {self.config_path}",
                              config_path=self.config_path, cause=e)

        if raw is None:
            self.logger.warning(f"配置文件为空，使用默认配置: {self.config_path}")
            return {}

        return raw

    def load(self) -> MonitorConfig:
        """
        加载配置并应用默认值

        配置文件缺失时记录警告并使用默认配置。

        Returns:
            MonitorConfig: 只读配置对象

        Raises:
            ConfigError: 配置格式或取值无效
        """
        self.logger.info(f"开始加载配置文件: {self.config_path}")

        try:
            raw = self.read_file()
        except ConfigMissingError as e:
            self.logger.warning(e.message)
            self.logger.warning("使用默认配置")
            raw = {}

        ConfigValidator.validate(raw)

        unknown_keys, _ = self._split_keys(raw)
        for key in unknown_keys:
            self.logger.warning(f"忽略未知配置项: {key}")

        self.config = MonitorConfig.from_dict(raw)
        self.logger.info(
            f"配置加载完成: 服务={self.config.service_name}, "
            f"告警通道={self._describe_channels(self.config)}")
        return self.config

    @staticmethod
    def _split_keys(raw: Dict[str, Any]) -> Tuple[list, list]:
        known = [key for key in raw if key in DEFAULTS]
        unknown = [key for key in raw if key not in DEFAULTS]
        return unknown, known

    @staticmethod
    def _describe_channels(config: MonitorConfig) -> str:
        channels = []
        if config.alert_email:
            channels.append('email')
        if config.alert_webhook:
            channels.append('webhook')
        return ', '.join(channels) if channels else '无'

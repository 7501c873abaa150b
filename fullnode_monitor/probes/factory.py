"""探针工厂"""

from typing import Dict, List, Optional, Type

from .base import BaseProbe
from .supervisor import SystemdSupervisor
from ..services.config_manager import MonitorConfig
from ..utils.exceptions import ConfigError

# 固定的检查顺序，保证日志可以逐行对比
DEFAULT_PROBE_ORDER = [
    'service_active',
    'metrics_endpoint',
    'rpc_reachable',
    'disk_usage',
    'memory_usage',
    'cpu_usage',
    'sync_status',
    'error_logs',
    'network',
]


class ProbeFactory:
    """探针工厂类，负责注册和创建探针"""

    def __init__(self):
        """初始化工厂"""
        self._probes: Dict[str, Type[BaseProbe]] = {}

    def register_probe(self, name: str, probe_class: Type[BaseProbe]):
        """
        注册探针类

        Args:
            name: 探针名称
            probe_class: 探针类

        Raises:
            ConfigError: 注册失败
        """
        if not issubclass(probe_class, BaseProbe):
            raise ConfigError(f"探针类 {probe_class.__name__} 必须继承自 BaseProbe")

        if name in self._probes:
            raise ConfigError(f"探针 '{name}' 已经注册")

        self._probes[name] = probe_class

    def unregister_probe(self, name: str):
        """取消注册探针类"""
        self._probes.pop(name, None)

    def create_probe(self, name: str, config: MonitorConfig,
                     supervisor: Optional[SystemdSupervisor] = None) -> BaseProbe:
        """
        创建探针实例

        Raises:
            ConfigError: 探针未注册
        """
        if name not in self._probes:
            raise ConfigError(f"不支持的探针: '{name}'")

        return self._probes[name](name, config, supervisor)

    def build_probes(self, config: MonitorConfig,
                     supervisor: Optional[SystemdSupervisor] = None,
                     order: Optional[List[str]] = None) -> List[BaseProbe]:
        """
        按固定顺序创建全部探针

        Args:
            config: 监控配置
            supervisor: 服务管理器
            order: 探针顺序，默认 DEFAULT_PROBE_ORDER

        Returns:
            List[BaseProbe]: 探针列表
        """
        if supervisor is None:
            supervisor = SystemdSupervisor(config.service_name, config.probe_timeout)
        names = order if order is not None else DEFAULT_PROBE_ORDER
        return [self.create_probe(name, config, supervisor) for name in names]

    def get_supported_probes(self) -> list:
        return list(self._probes.keys())


# 全局工厂实例
probe_factory = ProbeFactory()


def register_probe(name: str):
    """
    装饰器：注册探针类

    Args:
        name: 探针名称

    Returns:
        装饰器函数
    """
    def decorator(probe_class: Type[BaseProbe]):
        probe_factory.register_probe(name, probe_class)
        return probe_class

    return decorator

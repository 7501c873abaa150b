"""探针基类"""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.health_check import ProbeResult, ProbeStatus, Severity, Observation
from ..services.config_manager import MonitorConfig
from ..utils.log_manager import get_logger
from .supervisor import SystemdSupervisor


class BaseProbe(ABC):
    """探针抽象基类

    预期内的失败（服务不存在、端口未监听、命令缺失）必须转换为
    FAIL 或 UNKNOWN 结果，而不是抛出异常。
    """

    # 检查失败时的告警级别
    failure_severity = Severity.WARNING
    # 告警主题
    alert_subject = ""

    def __init__(self, name: str, config: MonitorConfig,
                 supervisor: Optional[SystemdSupervisor] = None):
        """
        初始化探针

        Args:
            name: 探针名称，同时也是阈值配置中的指标名
            config: 监控配置
            supervisor: 服务管理器，查询服务状态的探针需要
        """
        self.name = name
        self.config = config
        self.supervisor = supervisor
        self.logger = get_logger(f'probe.{self.name}')

    @abstractmethod
    async def probe(self) -> ProbeResult:
        """
        执行一次检查

        Returns:
            ProbeResult: 检查结果
        """
        pass

    def get_timeout(self) -> float:
        """
        获取超时时间配置

        Returns:
            float: 超时时间（秒）
        """
        return float(self.config.probe_timeout)

    def passed(self, observation: Observation = None, detail: str = "") -> ProbeResult:
        return ProbeResult(self.name, ProbeStatus.PASS, observation, detail)

    def failed(self, detail: str, observation: Observation = None) -> ProbeResult:
        self.logger.debug(f"检查未通过: {detail}")
        return ProbeResult(self.name, ProbeStatus.FAIL, observation, detail)

    def unknown(self, detail: str) -> ProbeResult:
        self.logger.debug(f"无法评估: {detail}")
        return ProbeResult(self.name, ProbeStatus.UNKNOWN, None, detail)

"""健康检查相关的数据模型"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional, Set, Union


class ProbeStatus(Enum):
    """探针检查状态"""
    PASS = "PASS"
    FAIL = "FAIL"
    UNKNOWN = "UNKNOWN"


class Severity(Enum):
    """告警级别"""
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class Comparison(Enum):
    """阈值比较方式，均为严格比较"""
    GREATER_THAN = "gt"
    LESS_THAN = "lt"


Observation = Union[int, float, str, None]


@dataclass(frozen=True)
class ProbeResult:
    """单个探针的检查结果"""
    name: str
    status: ProbeStatus
    observation: Observation = None
    detail: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_pass(self) -> bool:
        return self.status is ProbeStatus.PASS


@dataclass(frozen=True)
class ThresholdConfig:
    """指标阈值配置"""
    metric: str
    limit: float
    comparison: Comparison = Comparison.GREATER_THAN

    def describe(self) -> str:
        operator = '>' if self.comparison is Comparison.GREATER_THAN else '<'
        return f"{self.metric} {operator} {self.limit:g}"


@dataclass(frozen=True)
class Alert:
    """告警消息模型"""
    severity: Severity
    subject: str
    body: str
    hostname: str
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def full_message(self) -> str:
        """邮件与Webhook使用的完整告警正文"""
        return (
            f"时间: {self.timestamp.strftime('%Y-%m-%d %H:%M:%S')}\n"
            f"主机: {self.hostname}\n"
            f"级别: {self.severity.value}\n"
            f"主题: {self.subject}\n"
            f"\n"
            f"详情:\n"
            f"{self.body}\n"
            f"\n"
            f"---\n"
            f"全节点监控系统"
        )


@dataclass(frozen=True)
class HealthRunSummary:
    """一次健康检查的汇总"""
    checks_total: int
    checks_passed: int
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if self.checks_total < 0 or not 0 <= self.checks_passed <= self.checks_total:
            raise ValueError(
                f"检查计数无效: {self.checks_passed}/{self.checks_total}")

    @property
    def pass_rate(self) -> Optional[float]:
        """通过率，没有任何检查项时为 None"""
        if self.checks_total == 0:
            return None
        return self.checks_passed / self.checks_total

    def format_pass_rate(self) -> str:
        rate = self.pass_rate
        return "N/A" if rate is None else f"{rate * 100:.0f}%"


@dataclass
class HealthRunOutcome:
    """一次健康检查的完整产出"""
    summary: HealthRunSummary
    results: List[ProbeResult] = field(default_factory=list)
    alerts: List[Alert] = field(default_factory=list)
    failed_channels: Set[str] = field(default_factory=set)

    def meets_floor(self, floor: float) -> bool:
        rate = self.summary.pass_rate
        return rate is not None and rate >= floor


@dataclass
class StatusReport:
    """状态报告快照"""
    hostname: str
    service_name: str
    service_state: str
    active_since: str
    main_pid: Optional[int]
    version: str
    checkpoint: str
    disk_usage: Optional[float]
    disk_free_bytes: Optional[int]
    db_size_bytes: Optional[int]
    thresholds: Dict[str, Any]
    summary: HealthRunSummary
    results: List[ProbeResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

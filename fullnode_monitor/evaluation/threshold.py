"""阈值评估器"""

from typing import Dict, Optional

from ..models.health_check import Comparison, ProbeResult, ProbeStatus, Severity, ThresholdConfig
from ..utils.log_manager import get_logger

UNABLE_TO_EVALUATE = "unable to evaluate"


class ThresholdEvaluator:
    """将探针观测值与阈值比较并给出告警级别"""

    def __init__(self, thresholds: Optional[Dict[str, ThresholdConfig]] = None):
        """
        初始化阈值评估器

        Args:
            thresholds: 指标名到阈值配置的映射
        """
        self.thresholds: Dict[str, ThresholdConfig] = dict(thresholds or {})
        self.logger = get_logger('threshold_evaluator')

    def get_threshold(self, metric: str) -> Optional[ThresholdConfig]:
        return self.thresholds.get(metric)

    def evaluate(self, result: ProbeResult) -> Optional[Severity]:
        """
        评估单个探针结果

        UNKNOWN 结果一律视为 WARNING，不能静默跳过；
        没有对应阈值的结果不做分级，原样上报。

        Args:
            result: 探针结果

        Returns:
            Optional[Severity]: 告警级别，未越限时为 None
        """
        if result.status is ProbeStatus.UNKNOWN:
            self.logger.debug(f"{result.name}: {UNABLE_TO_EVALUATE} ({result.detail})")
            return Severity.WARNING

        threshold = self.thresholds.get(result.name)
        if threshold is None:
            return None

        if not self.is_numeric(result.observation):
            return None

        if self.breaches(result.observation, threshold):
            self.logger.debug(
                f"{result.name} 越限: {result.observation!r} ({threshold.describe()})")
            return Severity.WARNING

        return None

    @staticmethod
    def is_numeric(value) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    @staticmethod
    def breaches(observation: float, threshold: ThresholdConfig) -> bool:
        """严格比较，等于阈值不算越限"""
        if threshold.comparison is Comparison.GREATER_THAN:
            return observation > threshold.limit
        return observation < threshold.limit

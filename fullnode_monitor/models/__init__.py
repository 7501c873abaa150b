"""数据模型模块"""

from .health_check import (ProbeStatus, Severity, Comparison, ProbeResult, ThresholdConfig,
                           Alert, HealthRunSummary, HealthRunOutcome, StatusReport)

__all__ = ['ProbeStatus', 'Severity', 'Comparison', 'ProbeResult', 'ThresholdConfig',
           'Alert', 'HealthRunSummary', 'HealthRunOutcome', 'StatusReport']

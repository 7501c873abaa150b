"""健康检查执行器

按固定顺序执行全部探针，评估阈值，分发告警并生成汇总。
单个探针出错不会中断本轮检查。
"""

import asyncio
import socket
from typing import List, Optional, Sequence, Tuple

from ..alerts.dispatcher import AlertDispatcher
from ..evaluation.threshold import ThresholdEvaluator, UNABLE_TO_EVALUATE
from ..models.health_check import (Alert, HealthRunOutcome, HealthRunSummary, ProbeResult,
                                   ProbeStatus, Severity)
from ..probes.base import BaseProbe
from ..utils.log_manager import get_logger

DEGRADED_SUBJECT = "健康检查异常"


class HealthRunner:
    """单轮健康检查"""

    def __init__(self, probes: Sequence[BaseProbe], evaluator: ThresholdEvaluator,
                 dispatcher: AlertDispatcher, pass_rate_floor: float = 0.80,
                 hostname: Optional[str] = None):
        """
        初始化健康检查执行器

        Args:
            probes: 按执行顺序排列的探针
            evaluator: 阈值评估器
            dispatcher: 告警分发器
            pass_rate_floor: 通过率下限，低于该值时发送汇总告警
            hostname: 告警中的主机名，默认取本机主机名
        """
        self.probes = list(probes)
        self.evaluator = evaluator
        self.dispatcher = dispatcher
        self.pass_rate_floor = pass_rate_floor
        self.hostname = hostname or socket.gethostname()
        self.logger = get_logger('health_run')

    async def collect(self) -> List[ProbeResult]:
        """
        并发执行全部探针并等待所有结果

        Returns:
            List[ProbeResult]: 与探针顺序一致的结果列表
        """
        return list(await asyncio.gather(*(self._run_probe(probe) for probe in self.probes)))

    async def _run_probe(self, probe: BaseProbe) -> ProbeResult:
        timeout = probe.get_timeout()
        try:
            result = await asyncio.wait_for(probe.probe(), timeout=timeout)
        except asyncio.TimeoutError:
            result = ProbeResult(probe.name, ProbeStatus.FAIL, None, f"检查超时 ({timeout:g}s)")
        except Exception as e:
            self.logger.error(f"探针 {probe.name} 执行异常: {e}", exc_info=True)
            result = ProbeResult(probe.name, ProbeStatus.FAIL, None,
                                 f"检查异常: {type(e).__name__}: {e}")

        if result.is_pass:
            self.logger.info(f"[{probe.name}] {result.detail}")
        else:
            self.logger.warning(f"[{probe.name}] {result.status.value}: {result.detail}")
        return result

    def classify(self, probe: BaseProbe, result: ProbeResult) -> Optional[Severity]:
        """
        确定单个结果的告警级别

        阈值评估优先；没有阈值分级的失败结果使用探针自身的失败级别。
        """
        severity = self.evaluator.evaluate(result)
        if severity is not None:
            return severity
        if result.status is ProbeStatus.FAIL:
            return probe.failure_severity
        return None

    def build_alert(self, probe: BaseProbe, result: ProbeResult, severity: Severity) -> Alert:
        subject = probe.alert_subject or f"{probe.name} 检查异常"

        if result.status is ProbeStatus.UNKNOWN:
            body = f"{UNABLE_TO_EVALUATE}: {result.detail}"
        else:
            body = result.detail
            threshold = self.evaluator.get_threshold(result.name)
            if threshold is not None and result.status is ProbeStatus.PASS:
                body += f" (阈值: {threshold.describe()})"

        return Alert(severity=severity, subject=subject, body=body, hostname=self.hostname)

    @staticmethod
    def summarize(results: Sequence[ProbeResult],
                  breaches: Sequence[Optional[Severity]]) -> HealthRunSummary:
        """
        计算汇总，只有状态为 PASS 且未越限的结果计为通过

        Args:
            results: 探针结果
            breaches: 与结果一一对应的告警级别
        """
        passed = sum(1 for result, severity in zip(results, breaches)
                     if result.is_pass and severity is None)
        return HealthRunSummary(checks_total=len(results), checks_passed=passed)

    def build_degraded_alert(self, summary: HealthRunSummary) -> Alert:
        return Alert(
            severity=Severity.WARNING,
            subject=DEGRADED_SUBJECT,
            body=(f"健康检查通过率: {summary.format_pass_rate()} "
                  f"({summary.checks_passed}/{summary.checks_total})"),
            hostname=self.hostname
        )

    async def run_once(self) -> HealthRunOutcome:
        """
        执行一轮完整的健康检查

        Returns:
            HealthRunOutcome: 汇总、探针结果、告警及失败的通道
        """
        self.logger.info("开始监控检查...")

        results = await self.collect()

        classified: List[Tuple[BaseProbe, ProbeResult, Optional[Severity]]] = [
            (probe, result, self.classify(probe, result))
            for probe, result in zip(self.probes, results)
        ]

        alerts: List[Alert] = []
        failed_channels = set()
        for probe, result, severity in classified:
            if severity is None:
                continue
            alert = self.build_alert(probe, result, severity)
            alerts.append(alert)
            failed_channels |= await self.dispatcher.dispatch(alert)

        summary = self.summarize(results, [severity for _, _, severity in classified])
        message = (f"监控检查完成: {summary.checks_passed}/{summary.checks_total} 项通过 "
                   f"(通过率: {summary.format_pass_rate()})")
        self.logger.info(message)
        self.dispatcher.event_log.write('INFO', message)

        rate = summary.pass_rate
        if rate is not None and rate < self.pass_rate_floor:
            alert = self.build_degraded_alert(summary)
            alerts.append(alert)
            failed_channels |= await self.dispatcher.dispatch(alert)

        if failed_channels:
            self.logger.warning(f"本轮告警发送失败的通道: {', '.join(sorted(failed_channels))}")

        return HealthRunOutcome(summary=summary, results=results, alerts=alerts,
                                failed_channels=failed_channels)

"""服务运行状态探针"""

from .base import BaseProbe
from .factory import register_probe
from ..models.health_check import ProbeResult, Severity
from ..utils.exceptions import ProbeUnavailableError


@register_probe('service_active')
class ServiceActiveProbe(BaseProbe):
    """检查 systemd 服务是否处于 active 状态"""

    failure_severity = Severity.CRITICAL
    alert_subject = "服务停止"

    async def probe(self) -> ProbeResult:
        service_name = self.config.service_name

        try:
            state = await self.supervisor.show('ActiveState', 'SubState')
        except ProbeUnavailableError as e:
            return self.failed(f"无法查询服务 {service_name} 状态: {e.message}")

        active_state = state.get('ActiveState') or 'unknown'
        sub_state = state.get('SubState') or 'unknown'

        if active_state == 'active':
            return self.passed(active_state, f"服务 {service_name} 运行中 ({sub_state})")

        return self.failed(f"服务 {service_name} 未运行 (状态: {active_state}/{sub_state})",
                           observation=active_state)

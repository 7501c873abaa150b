"""资源使用探针：磁盘、进程内存、进程CPU、错误日志"""

import asyncio
from functools import partial
from typing import Union

import psutil

from .base import BaseProbe
from .factory import register_probe
from ..models.health_check import ProbeResult
from ..utils.exceptions import ProbeUnavailableError


def disk_usage_percent(path: str) -> float:
    """
    计算挂载点的磁盘使用率，不做四舍五入

    psutil 自带的 percent 字段已经保留了一位小数，阈值比较需要原始值。
    """
    usage = psutil.disk_usage(path)
    denominator = usage.used + usage.free
    if denominator <= 0:
        return 0.0
    return usage.used / denominator * 100


@register_probe('disk_usage')
class DiskUsageProbe(BaseProbe):
    """检查数据目录所在磁盘的使用率"""

    alert_subject = "磁盘空间不足"

    async def probe(self) -> ProbeResult:
        path = self.config.data_path
        loop = asyncio.get_running_loop()

        try:
            percent = await loop.run_in_executor(None, disk_usage_percent, path)
        except FileNotFoundError:
            return self.unknown(f"数据目录不存在: {path}")
        except OSError as e:
            return self.unknown(f"无法读取磁盘使用情况 {path}: {e}")

        return self.passed(percent, f"磁盘使用率: {percent:.1f}% ({path})")


class ProcessProbe(BaseProbe):
    """按服务主进程采集资源使用率的探针基类"""

    label = ''

    async def _main_pid(self) -> Union[int, ProbeResult]:
        try:
            pid = await self.supervisor.main_pid()
        except ProbeUnavailableError as e:
            return self.unknown(f"无法获取进程ID: {e.message}")
        if pid is None:
            return self.unknown("无法获取进程ID")
        return pid

    def measure(self, process: psutil.Process) -> float:
        raise NotImplementedError

    async def probe(self) -> ProbeResult:
        pid = await self._main_pid()
        if isinstance(pid, ProbeResult):
            return pid

        loop = asyncio.get_running_loop()
        try:
            process = psutil.Process(pid)
            percent = await loop.run_in_executor(None, partial(self.measure, process))
        except psutil.NoSuchProcess:
            return self.unknown(f"进程 {pid} 不存在")
        except psutil.AccessDenied:
            return self.unknown(f"无权限读取进程 {pid} 的信息")

        return self.passed(percent, f"{self.label}使用率: {percent:.1f}% (PID {pid})")


@register_probe('memory_usage')
class MemoryUsageProbe(ProcessProbe):
    """检查服务主进程的内存占用百分比"""

    label = '内存'
    alert_subject = "内存使用过高"

    def measure(self, process: psutil.Process) -> float:
        return process.memory_percent()


@register_probe('cpu_usage')
class CpuUsageProbe(ProcessProbe):
    """检查服务主进程的CPU占用百分比"""

    label = 'CPU'
    alert_subject = "CPU使用过高"

    def measure(self, process: psutil.Process) -> float:
        return process.cpu_percent(interval=self.config.cpu_sample_interval)

    def get_timeout(self) -> float:
        # 采样时间不计入超时
        return float(self.config.probe_timeout) + float(self.config.cpu_sample_interval)


@register_probe('error_logs')
class ErrorLogProbe(BaseProbe):
    """统计时间窗口内服务的错误级别日志"""

    alert_subject = "发现错误日志"

    def _window_text(self) -> str:
        window = float(self.config.error_log_window)
        if window % 3600 == 0:
            return f"{int(window // 3600)}小时"
        if window % 60 == 0:
            return f"{int(window // 60)}分钟"
        return f"{window:g}秒"

    async def probe(self) -> ProbeResult:
        try:
            count, recent = await self.supervisor.recent_errors(self.config.error_log_window)
        except ProbeUnavailableError as e:
            return self.unknown(f"无法读取服务日志: {e.message}")

        detail = f"过去{self._window_text()}内有 {count} 条错误日志"
        if recent:
            detail += ":\n" + "\n".join(recent)

        return self.passed(count, detail)

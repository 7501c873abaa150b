"""状态报告

汇总服务、节点版本、检查点与资源使用情况，不发送任何告警。
"""

import asyncio
import os
import socket
from typing import Optional

import aiohttp
import psutil

from .config_manager import MonitorConfig
from .health_run import HealthRunner
from ..models.health_check import StatusReport
from ..probes.http_probes import call_json_rpc
from ..probes.supervisor import SystemdSupervisor, run_command
from ..utils.exceptions import ProbeUnavailableError
from ..utils.log_manager import get_logger


def directory_size(path: str) -> int:
    """统计目录下所有文件的字节数，跳过无法访问的文件"""
    total = 0
    for root, _, files in os.walk(path):
        for name in files:
            try:
                total += os.lstat(os.path.join(root, name)).st_size
            except OSError:
                continue
    return total


def format_bytes(size: Optional[int]) -> str:
    """以 K/M/G/T 单位显示字节数"""
    if size is None:
        return '未知'
    value = float(size)
    for unit in ['B', 'K', 'M', 'G', 'T']:
        if value < 1024 or unit == 'T':
            return f"{value:.1f}{unit}" if unit != 'B' else f"{int(value)}B"
        value /= 1024
    return f"{value:.1f}T"


class StatusReporter:
    """生成节点状态报告"""

    def __init__(self, config: MonitorConfig, supervisor: SystemdSupervisor,
                 runner: HealthRunner):
        """
        初始化状态报告生成器

        Args:
            config: 监控配置
            supervisor: 服务管理器
            runner: 健康检查执行器，只使用其探针采集功能
        """
        self.config = config
        self.supervisor = supervisor
        self.runner = runner
        self.logger = get_logger('status_report')

    async def build(self) -> StatusReport:
        """采集一次状态快照"""
        properties = await self._service_properties()
        version, checkpoint, disk, db_size, results = await asyncio.gather(
            self._node_version(),
            self._checkpoint(),
            self._disk(),
            self._db_size(),
            self.runner.collect()
        )

        try:
            main_pid = int(properties.get('MainPID', '0')) or None
        except ValueError:
            main_pid = None

        disk_usage, disk_free = disk
        breaches = [self.runner.evaluator.evaluate(result) for result in results]

        return StatusReport(
            hostname=socket.gethostname(),
            service_name=self.config.service_name,
            service_state=properties.get('ActiveState') or '未知',
            active_since=properties.get('ActiveEnterTimestamp') or '未知',
            main_pid=main_pid,
            version=version,
            checkpoint=checkpoint,
            disk_usage=disk_usage,
            disk_free_bytes=disk_free,
            db_size_bytes=db_size,
            thresholds={
                'disk_threshold': self.config.disk_threshold,
                'memory_threshold': self.config.memory_threshold,
                'cpu_threshold': self.config.cpu_threshold,
                'pass_rate_floor': self.config.pass_rate_floor
            },
            summary=self.runner.summarize(results, breaches),
            results=results
        )

    async def _service_properties(self):
        try:
            return await self.supervisor.show('ActiveState', 'ActiveEnterTimestamp', 'MainPID')
        except ProbeUnavailableError as e:
            self.logger.warning(f"无法查询服务状态: {e.message}")
            return {}

    async def _node_version(self) -> str:
        binary = self.config.node_binary
        if not os.path.isfile(binary):
            return '未知'
        try:
            returncode, stdout, _ = await run_command([binary, '--version'],
                                                      self.config.probe_timeout)
        except ProbeUnavailableError as e:
            self.logger.warning(f"无法获取节点版本: {e.message}")
            return '未知'
        return stdout.strip() if returncode == 0 and stdout.strip() else '未知'

    async def _checkpoint(self) -> str:
        timeout = aiohttp.ClientTimeout(total=self.config.probe_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                result = await call_json_rpc(session, self.config.rpc_url,
                                             self.config.rpc_method)
        except ProbeUnavailableError as e:
            self.logger.warning(f"无法获取当前检查点: {e.message}")
            return '未知'
        return str(result)

    async def _disk(self):
        loop = asyncio.get_running_loop()
        try:
            usage = await loop.run_in_executor(None, psutil.disk_usage, self.config.data_path)
        except OSError as e:
            self.logger.warning(f"无法读取磁盘使用情况: {e}")
            return None, None
        return usage.percent, usage.free

    async def _db_size(self) -> Optional[int]:
        path = self.config.data_path
        if not os.path.isdir(path):
            return None
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, directory_size, path)

    @staticmethod
    def render(report: StatusReport) -> str:
        """渲染文本格式的状态报告"""
        disk_usage = '未知' if report.disk_usage is None else f"{report.disk_usage:.1f}%"
        thresholds = report.thresholds
        lines = [
            "========================================",
            "全节点状态报告",
            "========================================",
            f"时间: {report.timestamp.strftime('%Y-%m-%d %H:%M:%S')}",
            f"主机: {report.hostname}",
            "",
            f"服务: {report.service_name}",
            f"服务状态: {report.service_state}",
            f"启动时间: {report.active_since}",
            f"进程ID: {report.main_pid or '无'}",
            f"版本: {report.version}",
            "",
            f"当前检查点: {report.checkpoint}",
            "",
            "资源使用:",
            f"- 磁盘使用率: {disk_usage}",
            f"- 可用空间: {format_bytes(report.disk_free_bytes)}",
            f"- 数据库大小: {format_bytes(report.db_size_bytes)}",
            "",
            "监控阈值:",
            f"- 磁盘使用: {thresholds['disk_threshold']}%",
            f"- 内存使用: {thresholds['memory_threshold']}%",
            f"- CPU使用: {thresholds['cpu_threshold']}%",
            f"- 通过率下限: {thresholds['pass_rate_floor'] * 100:.0f}%",
            "",
            f"检查结果: {report.summary.checks_passed}/{report.summary.checks_total} 项通过 "
            f"(通过率: {report.summary.format_pass_rate()})",
        ]
        for result in report.results:
            first_line = result.detail.splitlines()[0] if result.detail else ''
            lines.append(f"- [{result.status.value}] {result.name}: {first_line}")
        lines.append("========================================")
        return "\n".join(lines)

"""监控调度器模块

按固定间隔重复执行健康检查，或只执行一次。
"""

import asyncio
import math
import time
from enum import Enum
from typing import Optional

from .health_run import HealthRunner
from ..models.health_check import HealthRunOutcome
from ..utils.exceptions import ConfigError, SchedulerError
from ..utils.log_manager import get_logger


class SchedulerState(Enum):
    """调度器状态"""
    IDLE = "idle"
    RUNNING = "running"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


class MonitorScheduler:
    """监控调度器

    健康检查按顺序执行，不会与自身并发；若一轮检查耗时超过间隔，
    下一轮推迟到本轮结束后立即开始。收到停止请求时，正在执行的
    一轮检查会完整结束，休眠中的调度器立即退出且不再开始新的一轮。
    """

    def __init__(self, runner: HealthRunner, interval: float = 300,
                 single_shot: bool = False):
        """初始化监控调度器

        Args:
            runner: 健康检查执行器
            interval: 检查间隔（秒）
            single_shot: 是否只执行一次

        Raises:
            ConfigError: 检查间隔无效
        """
        if (isinstance(interval, bool) or not isinstance(interval, (int, float))
                or not math.isfinite(interval) or interval <= 0):
            raise ConfigError(f"检查间隔必须是正数: {interval!r}")

        self.runner = runner
        self.interval = interval
        self.single_shot = single_shot
        self.state = SchedulerState.IDLE
        self.runs_completed = 0
        self.last_outcome: Optional[HealthRunOutcome] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._stop_requested = False
        self.logger = get_logger('monitor_scheduler')

    @property
    def is_running(self) -> bool:
        return self.state in (SchedulerState.RUNNING, SchedulerState.SLEEPING)

    def request_stop(self):
        """请求停止调度器，正在执行的检查会完整结束"""
        if self.state is SchedulerState.STOPPED:
            return
        self.logger.info("收到停止请求")
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()

    async def run(self) -> Optional[HealthRunOutcome]:
        """
        运行调度循环直到停止

        Returns:
            Optional[HealthRunOutcome]: 最近一轮检查的结果

        Raises:
            SchedulerError: 调度器已经在运行
        """
        if self.is_running:
            raise SchedulerError("监控调度器已经在运行")

        self._stop_event = asyncio.Event()
        if self._stop_requested:
            self._stop_event.set()

        if self.single_shot:
            self.logger.info("单次检查模式")
        else:
            self.logger.info(f"启动守护进程模式，监控间隔: {self.interval:g}秒")

        try:
            while not self._stop_event.is_set():
                self.state = SchedulerState.RUNNING
                started = time.monotonic()
                self.last_outcome = await self.runner.run_once()
                self.runs_completed += 1

                if self.single_shot:
                    break

                self.state = SchedulerState.SLEEPING
                delay = max(0.0, self.interval - (time.monotonic() - started))
                if delay == 0:
                    self.logger.warning(
                        f"本轮检查耗时超过间隔 {self.interval:g}秒，立即开始下一轮")
                if await self._sleep(delay):
                    break
        finally:
            self.state = SchedulerState.STOPPED
            self.logger.info(f"监控调度器已停止，共完成 {self.runs_completed} 轮检查")

        return self.last_outcome

    async def _sleep(self, delay: float) -> bool:
        """休眠指定时间，返回是否在休眠期间收到停止请求"""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

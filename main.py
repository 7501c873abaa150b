#!/usr/bin/env python3
"""
全节点健康监控程序入口

组装配置、探针、告警分发器和调度器，提供 run / report / daemon
以及 restart / stop 子命令。
"""

import argparse
import asyncio
import logging
import math
import signal
import sys
from typing import Optional, List

from fullnode_monitor.alerts.dispatcher import AlertDispatcher, create_alerters
from fullnode_monitor.evaluation.threshold import ThresholdEvaluator
from fullnode_monitor.models.health_check import HealthRunOutcome
from fullnode_monitor.probes.factory import probe_factory
from fullnode_monitor.probes.supervisor import SystemdSupervisor
from fullnode_monitor.services.config_manager import (ConfigManager, MonitorConfig,
                                                      DEFAULT_CONFIG_PATH)
from fullnode_monitor.services.health_run import HealthRunner
from fullnode_monitor.services.monitor_scheduler import MonitorScheduler
from fullnode_monitor.services.status_report import StatusReporter
from fullnode_monitor.utils.event_log import EventLog
from fullnode_monitor.utils.exceptions import ConfigError, MonitorError
from fullnode_monitor.utils.log_manager import log_manager, get_logger

# 版本信息
__version__ = "1.0.0"

EXIT_OK = 0
EXIT_FAILURE = 1


class FullnodeMonitorApp:
    """全节点监控主应用程序类"""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH,
                 log_level: Optional[str] = None, log_file: Optional[str] = None):
        """初始化应用程序

        Args:
            config_path: 配置文件路径
            log_level: 覆盖配置文件中的日志级别
            log_file: 覆盖配置文件中的应用日志文件
        """
        self.config_path = config_path
        self.log_level = log_level
        self.log_file = log_file
        self.logger: Optional[logging.Logger] = None

        # 核心组件
        self.config: Optional[MonitorConfig] = None
        self.supervisor: Optional[SystemdSupervisor] = None
        self.dispatcher: Optional[AlertDispatcher] = None
        self.runner: Optional[HealthRunner] = None
        self.scheduler: Optional[MonitorScheduler] = None

    def initialize(self):
        """加载配置并初始化全部组件

        Raises:
            ConfigError: 配置无效
        """
        if self.log_level:
            log_manager.configure({'log_level': self.log_level})

        self.config = ConfigManager(self.config_path).load()
        self._configure_logging(self.config)
        self.logger = get_logger('main')

        config = self.config
        self.supervisor = SystemdSupervisor(config.service_name, config.probe_timeout)
        probes = probe_factory.build_probes(config, self.supervisor)
        evaluator = ThresholdEvaluator(config.thresholds())

        try:
            alerters = create_alerters(config)
        except MonitorError as e:
            raise ConfigError(f"告警通道配置无效: {e.message}", cause=e)

        self.dispatcher = AlertDispatcher(EventLog(config.log_file), alerters,
                                          timeout=config.alert_timeout)
        self.runner = HealthRunner(probes, evaluator, self.dispatcher,
                                   pass_rate_floor=config.pass_rate_floor)

        self.logger.info(
            f"组件初始化完成: {len(probes)} 项检查, "
            f"告警通道: {', '.join(self.dispatcher.get_alerter_names()) or '无'}")

    def _configure_logging(self, config: MonitorConfig):
        """配置日志系统，命令行参数优先"""
        log_config = {'log_level': self.log_level or config.log_level}
        app_log_file = self.log_file or config.app_log_file
        if app_log_file:
            log_config['log_file'] = app_log_file
        log_manager.configure(log_config)

    async def run_check(self) -> HealthRunOutcome:
        """执行一次健康检查"""
        self.scheduler = MonitorScheduler(self.runner, self.config.check_interval,
                                          single_shot=True)
        return await self.scheduler.run()

    async def run_daemon(self, interval: float) -> Optional[HealthRunOutcome]:
        """以守护进程模式运行，收到 SIGINT / SIGTERM 后在本轮检查结束时退出"""
        self.scheduler = MonitorScheduler(self.runner, interval)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.shutdown, sig)

        try:
            return await self.scheduler.run()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)

    def shutdown(self, signum: Optional[int] = None):
        """触发应用程序关闭"""
        if self.logger:
            name = signal.Signals(signum).name if signum else 'shutdown'
            self.logger.info(f"收到关闭信号 {name}")
        if self.scheduler:
            self.scheduler.request_stop()

    async def report(self) -> str:
        """生成状态报告文本"""
        reporter = StatusReporter(self.config, self.supervisor, self.runner)
        return reporter.render(await reporter.build())

    async def control(self, action: str) -> bool:
        """重启或停止节点服务"""
        try:
            if action == 'restart':
                return await self.supervisor.restart()
            return await self.supervisor.stop()
        except MonitorError as e:
            self.logger.error(f"执行 {action} 失败: {e.message}")
            return False


def parse_interval(value) -> float:
    """解析守护进程的检查间隔

    Raises:
        ConfigError: 间隔不是正数
    """
    try:
        interval = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"无效的监控间隔: {value!r}")
    if not math.isfinite(interval) or interval <= 0:
        raise ConfigError(f"监控间隔必须是正数: {value!r}")
    return interval


def create_argument_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog='fullnode-monitor',
        description='全节点健康监控 - 检查节点服务、接口与资源使用并发送告警',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  %(prog)s run                        # 运行一次监控检查
  %(prog)s report                     # 生成状态报告
  %(prog)s daemon --interval 60       # 以60秒间隔运行守护进程
  %(prog)s -c /etc/monitor.yaml run   # 指定配置文件
        """
    )

    parser.add_argument(
        '--config', '-c',
        default=DEFAULT_CONFIG_PATH,
        help=f'YAML配置文件路径 (默认: {DEFAULT_CONFIG_PATH})'
    )

    parser.add_argument(
        '--version', '-v',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='设置日志级别（覆盖配置文件设置）'
    )

    parser.add_argument(
        '--log-file',
        help='应用日志文件路径（覆盖配置文件设置）'
    )

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    subparsers.add_parser('run', help='执行一次健康检查，通过率不低于下限时返回0')
    subparsers.add_parser('report', help='打印当前状态报告')

    daemon_parser = subparsers.add_parser('daemon', help='按固定间隔持续检查')
    daemon_parser.add_argument(
        '--interval', '-i',
        help='监控间隔秒数（默认使用配置文件中的 check_interval）'
    )

    subparsers.add_parser('restart', help='重启节点服务')
    subparsers.add_parser('stop', help='停止节点服务')

    return parser


def print_outcome(outcome: HealthRunOutcome):
    """打印单次检查结果"""
    for result in outcome.results:
        mark = '✅' if result.is_pass else '❌'
        first_line = result.detail.splitlines()[0] if result.detail else ''
        print(f"   {mark} {result.name}: {first_line}")
    summary = outcome.summary
    print(f"检查完成: {summary.checks_passed}/{summary.checks_total} 项通过 "
          f"(通过率: {summary.format_pass_rate()})")
    if outcome.failed_channels:
        print(f"告警发送失败的通道: {', '.join(sorted(outcome.failed_channels))}")


async def main(argv: Optional[List[str]] = None) -> int:
    """主函数

    Returns:
        int: 进程退出码
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    app = FullnodeMonitorApp(args.config, args.log_level, args.log_file)

    try:
        app.initialize()

        if args.command == 'run':
            outcome = await app.run_check()
            print_outcome(outcome)
            return EXIT_OK if outcome.meets_floor(app.config.pass_rate_floor) else EXIT_FAILURE

        if args.command == 'report':
            print(await app.report())
            return EXIT_OK

        if args.command == 'daemon':
            interval = (parse_interval(args.interval) if args.interval is not None
                        else app.config.check_interval)
            await app.run_daemon(interval)
            return EXIT_OK

        success = await app.control(args.command)
        return EXIT_OK if success else EXIT_FAILURE

    except ConfigError as e:
        print(f"配置错误: {e.message}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        log_manager.cleanup()


def run():
    """命令行入口"""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()

"""
日志管理器模块

提供统一的应用日志记录功能，支持控制台和文件输出、日志级别配置
以及日志轮转。告警事件的持久化记录见 event_log 模块。
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from enum import Enum


class LogLevel(Enum):
    """日志级别枚举"""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class LogManager:
    """
    日志管理器类

    提供统一的日志记录功能，支持：
    - 文件和控制台日志输出
    - 日志级别配置
    - 日志轮转和文件大小管理
    """

    _instance: Optional['LogManager'] = None
    _initialized: bool = False

    def __new__(cls) -> 'LogManager':
        """单例模式实现"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """初始化日志管理器"""
        if self._initialized:
            return

        self._loggers: Dict[str, logging.Logger] = {}
        self._file_format = (
            '%(asctime)s - [%(levelname)s] %(name)s - %(message)s'
        )
        self._console_format = '%(asctime)s - [%(levelname)s] %(message)s'
        self._date_format = '%Y-%m-%dT%H:%M:%S%z'

        # 默认配置
        self._log_level = LogLevel.INFO
        self._log_file: Optional[str] = None
        self._max_file_size = 10 * 1024 * 1024  # 10MB
        self._backup_count = 5
        self._enable_console = True
        self._enable_file = False

        self._initialized = True

    def configure(self, config: Dict[str, Any]) -> None:
        """
        配置日志管理器，已创建的日志记录器会按新配置重建处理器

        Args:
            config: 日志配置字典，包含以下可选键：
                - log_level: 日志级别 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
                - log_file: 应用日志文件路径
                - max_file_size: 最大文件大小（字节）
                - backup_count: 备份文件数量
                - enable_console: 是否启用控制台输出
        """
        if 'log_level' in config:
            level_str = str(config['log_level']).upper()
            if hasattr(LogLevel, level_str):
                self._log_level = LogLevel[level_str]
            else:
                raise ValueError(f"无效的日志级别: {level_str}")

        if config.get('log_file'):
            self._log_file = config['log_file']
            self._enable_file = True

        if 'max_file_size' in config:
            self._max_file_size = config['max_file_size']

        if 'backup_count' in config:
            self._backup_count = config['backup_count']

        if 'enable_console' in config:
            self._enable_console = config['enable_console']

        for logger in self._loggers.values():
            self._setup_handlers(logger)

    def get_logger(self, name: str) -> logging.Logger:
        """
        获取指定名称的日志记录器

        Args:
            name: 日志记录器名称

        Returns:
            配置好的日志记录器实例
        """
        if name in self._loggers:
            return self._loggers[name]

        logger = logging.getLogger(f'fullnode_monitor.{name}')
        self._setup_handlers(logger)

        self._loggers[name] = logger
        return logger

    def _setup_handlers(self, logger: logging.Logger) -> None:
        """按当前配置为日志记录器重建处理器"""
        logger.setLevel(self._log_level.value)

        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        if self._enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(self._log_level.value)
            console_handler.setFormatter(logging.Formatter(
                self._console_format,
                datefmt=self._date_format
            ))
            logger.addHandler(console_handler)

        if self._enable_file and self._log_file:
            try:
                Path(self._log_file).parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    self._log_file,
                    maxBytes=self._max_file_size,
                    backupCount=self._backup_count,
                    encoding='utf-8'
                )
            except OSError as e:
                # 日志文件不可写时只保留控制台输出
                print(f"无法打开应用日志文件 {self._log_file}: {e}", file=sys.stderr)
            else:
                file_handler.setLevel(self._log_level.value)
                file_handler.setFormatter(logging.Formatter(
                    self._file_format,
                    datefmt=self._date_format
                ))
                logger.addHandler(file_handler)

        # 防止日志向上传播
        logger.propagate = False

    def set_level(self, level: LogLevel) -> None:
        """
        设置全局日志级别

        Args:
            level: 新的日志级别
        """
        self._log_level = level

        for logger in self._loggers.values():
            logger.setLevel(level.value)
            for handler in logger.handlers:
                handler.setLevel(level.value)

    def get_log_stats(self) -> Dict[str, Any]:
        """获取日志配置摘要"""
        return {
            'loggers_count': len(self._loggers),
            'log_level': self._log_level.name,
            'file_logging_enabled': self._enable_file,
            'console_logging_enabled': self._enable_console,
            'log_file': self._log_file
        }

    def cleanup(self) -> None:
        """关闭所有处理器"""
        for logger in self._loggers.values():
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()

        self._loggers.clear()


# 全局日志管理器实例
log_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """
    获取日志记录器的便捷函数

    Args:
        name: 日志记录器名称

    Returns:
        配置好的日志记录器实例
    """
    return log_manager.get_logger(name)


def configure_logging(config: Dict[str, Any]) -> None:
    """
    配置日志系统的便捷函数

    Args:
        config: 日志配置字典
    """
    log_manager.configure(config)

"""工具模块"""

from .exceptions import (MonitorError, ConfigError, ConfigMissingError, ProbeUnavailableError,
                         AlertError, DispatchFailedError, LogWriteFailedError, SchedulerError)
from .log_manager import LogManager, LogLevel, get_logger, configure_logging, log_manager
from .event_log import EventLog

__all__ = [
    'MonitorError', 'ConfigError', 'ConfigMissingError', 'ProbeUnavailableError',
    'AlertError', 'DispatchFailedError', 'LogWriteFailedError', 'SchedulerError',
    'LogManager', 'LogLevel', 'get_logger', 'configure_logging', 'log_manager',
    'EventLog'
]

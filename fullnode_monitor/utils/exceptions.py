"""自定义异常类和错误代码"""

import traceback
from enum import Enum
from typing import Optional, Dict, Any
from datetime import datetime


class ErrorCode(Enum):
    """错误代码枚举"""
    # 通用错误 (1000-1999)
    UNKNOWN_ERROR = 1000
    VALIDATION_ERROR = 1002

    # 配置错误 (2000-2999)
    CONFIG_FILE_NOT_FOUND = 2000
    CONFIG_PARSE_ERROR = 2001
    CONFIG_VALIDATION_ERROR = 2002

    # 探针错误 (3000-3999)
    PROBE_UNAVAILABLE = 3000
    COMMAND_NOT_FOUND = 3001
    TIMEOUT_ERROR = 3002
    INVALID_RESPONSE = 3006

    # 告警错误 (4000-4999)
    ALERT_CONFIG_ERROR = 4000
    ALERT_SEND_ERROR = 4001

    # 调度错误 (5000-5999)
    SCHEDULER_ERROR = 5000

    # 事件日志错误 (6000-6999)
    LOG_WRITE_ERROR = 6000


class MonitorError(Exception):
    """全节点监控系统基础异常类"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause
        self.recoverable = recoverable
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            'error_code': self.error_code.value,
            'error_name': self.error_code.name,
            'message': self.message,
            'details': self.details,
            'recoverable': self.recoverable,
            'timestamp': self.timestamp.isoformat(),
            'cause': str(self.cause) if self.cause else None,
            'traceback': traceback.format_exc() if self.cause else None
        }

    def format_error(self) -> str:
        """格式化错误信息"""
        error_msg = f"[{self.error_code.name}] {self.message}"
        if self.details:
            details_str = ", ".join([f"{k}={v}" for k, v in self.details.items()])
            error_msg += f" (详情: {details_str})"
        if self.cause:
            error_msg += f" (原因: {str(self.cause)})"
        return error_msg


class ConfigError(MonitorError):
    """配置相关异常，启动阶段出现即为致命错误"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFIG_VALIDATION_ERROR,
        config_path: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop('details', {})
        if config_path:
            details['config_path'] = config_path
        kwargs.setdefault('recoverable', False)
        super().__init__(message, error_code, details, **kwargs)


class ConfigMissingError(ConfigError):
    """配置文件缺失，使用默认配置继续运行"""

    def __init__(self, message: str, config_path: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            ErrorCode.CONFIG_FILE_NOT_FOUND,
            config_path=config_path,
            recoverable=True,
            **kwargs
        )


class ProbeUnavailableError(MonitorError):
    """探针依赖的外部系统不可用"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.PROBE_UNAVAILABLE,
        probe_name: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop('details', {})
        if probe_name:
            details['probe_name'] = probe_name
        super().__init__(message, error_code, details, **kwargs)


class AlertError(MonitorError):
    """告警相关异常"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.ALERT_SEND_ERROR,
        alert_name: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop('details', {})
        if alert_name:
            details['alert_name'] = alert_name
        super().__init__(message, error_code, details, **kwargs)


class AlertConfigError(AlertError):
    """告警配置异常"""

    def __init__(self, message: str, alert_name: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            ErrorCode.ALERT_CONFIG_ERROR,
            alert_name=alert_name,
            recoverable=False,
            **kwargs
        )


class DispatchFailedError(AlertError):
    """单个告警通道发送失败"""

    def __init__(self, message: str, alert_name: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            ErrorCode.ALERT_SEND_ERROR,
            alert_name=alert_name,
            recoverable=True,
            **kwargs
        )


class LogWriteFailedError(MonitorError):
    """事件日志写入失败，只影响日志子系统"""

    def __init__(self, message: str, log_path: Optional[str] = None, **kwargs):
        details = kwargs.pop('details', {})
        if log_path:
            details['log_path'] = log_path
        super().__init__(message, ErrorCode.LOG_WRITE_ERROR, details, **kwargs)


class SchedulerError(MonitorError):
    """调度器相关异常"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.SCHEDULER_ERROR,
        **kwargs
    ):
        super().__init__(message, error_code, **kwargs)

"""持久化事件日志

每个事件一行，格式为 ``<ISO8601 时间戳> - [LEVEL] message``，只追加不改写。
"""

import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from .exceptions import LogWriteFailedError
from .log_manager import get_logger


class EventLog:
    """追加写入的事件日志文件"""

    def __init__(self, path: str):
        """
        初始化事件日志

        Args:
            path: 日志文件路径
        """
        self.path = path
        self._lock = threading.Lock()
        self.logger = get_logger('event_log')
        self.write_failures = 0
        self.last_error: Optional[LogWriteFailedError] = None

    @staticmethod
    def format_line(level: str, message: str, timestamp: Optional[datetime] = None) -> str:
        """
        格式化一行事件日志

        Args:
            level: 日志级别
            message: 日志内容，换行会被替换为空格以保证一事件一行
            timestamp: 事件时间，默认当前本地时间

        Returns:
            str: 不含换行符的日志行
        """
        timestamp = timestamp or datetime.now().astimezone()
        single_line = ' '.join(message.splitlines())
        return f"{timestamp.isoformat(timespec='seconds')} - [{level.upper()}] {single_line}"

    def write(self, level: str, message: str, timestamp: Optional[datetime] = None) -> bool:
        """
        追加一行事件日志

        写入失败只记录到应用日志，不向调用方抛出异常。

        Returns:
            bool: 是否写入成功
        """
        line = self.format_line(level, message, timestamp) + '\n'

        with self._lock:
            try:
                self._append(line)
                return True
            except OSError as e:
                self.write_failures += 1
                self.last_error = LogWriteFailedError(
                    f"写入事件日志失败: {e}", log_path=self.path, cause=e
                )
                self.logger.error(self.last_error.format_error())
                return False

    def _append(self, line: str) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o644)
        try:
            os.write(fd, line.encode('utf-8'))
        finally:
            os.close(fd)

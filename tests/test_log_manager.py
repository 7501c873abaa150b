"""日志管理器测试"""

import logging
import logging.handlers
import os
import sys
import tempfile

import pytest

from fullnode_monitor.utils.log_manager import LogLevel, LogManager, get_logger, log_manager


class TestLogManager:
    """日志管理器测试类"""

    def setup_method(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        log_manager.cleanup()
        log_manager.configure({'log_level': 'INFO', 'enable_console': True})
        log_manager._enable_file = False
        log_manager._log_file = None

    def teardown_method(self):
        log_manager.cleanup()
        log_manager._enable_file = False
        log_manager._log_file = None
        log_manager.configure({'log_level': 'INFO'})
        self.temp_dir.cleanup()

    def test_singleton(self):
        """测试单例模式"""
        assert LogManager() is log_manager

    def test_get_logger_namespaced_and_cached(self):
        logger = get_logger('unit')

        assert logger.name == 'fullnode_monitor.unit'
        assert get_logger('unit') is logger
        assert logger.propagate is False

    def test_console_handler_writes_to_stderr(self):
        logger = get_logger('console')

        stream_handlers = [h for h in logger.handlers
                           if type(h) is logging.StreamHandler]
        assert len(stream_handlers) == 1
        assert stream_handlers[0].stream is sys.stderr

    def test_configure_file_logging(self):
        """测试配置文件日志"""
        log_file = os.path.join(self.temp_dir.name, 'app', 'monitor-app.log')
        logger = get_logger('file')

        log_manager.configure({'log_file': log_file, 'log_level': 'DEBUG'})
        logger.debug('调试信息')
        for handler in logger.handlers:
            handler.flush()

        assert any(isinstance(h, logging.handlers.RotatingFileHandler)
                   for h in logger.handlers)
        with open(log_file, 'r', encoding='utf-8') as f:
            content = f.read()
        assert '[DEBUG] fullnode_monitor.file - 调试信息' in content

    def test_unwritable_file_keeps_console(self, capsys):
        """测试文件不可写时保留控制台输出"""
        blocker = os.path.join(self.temp_dir.name, 'blocker')
        with open(blocker, 'w') as f:
            f.write('x')

        logger = get_logger('fallback')
        log_manager.configure({'log_file': os.path.join(blocker, 'app.log')})

        assert len(logger.handlers) == 1
        assert '无法打开应用日志文件' in capsys.readouterr().err

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            log_manager.configure({'log_level': 'VERBOSE'})

    def test_set_level(self):
        logger = get_logger('level')
        log_manager.set_level(LogLevel.ERROR)

        assert logger.level == logging.ERROR
        assert all(h.level == logging.ERROR for h in logger.handlers)
        assert log_manager.get_log_stats()['log_level'] == 'ERROR'

"""systemd 服务管理器适配

所有对 systemctl / journalctl 输出的解析都集中在这里。
"""

import asyncio
import json
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from ..utils.exceptions import ProbeUnavailableError, ErrorCode
from ..utils.log_manager import get_logger


async def run_command(args: Sequence[str], timeout: float) -> Tuple[int, str, str]:
    """
    执行外部命令并等待结束

    Args:
        args: 命令及参数
        timeout: 超时时间（秒）

    Returns:
        tuple: (返回码, 标准输出, 标准错误)

    Raises:
        ProbeUnavailableError: 命令不存在、无法执行或超时
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
    except FileNotFoundError as e:
        raise ProbeUnavailableError(f"命令不存在: {args[0]}", ErrorCode.COMMAND_NOT_FOUND,
                                    cause=e)
    except OSError as e:
        raise ProbeUnavailableError(f"无法执行命令 {args[0]}: {e}", cause=e)

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        raise ProbeUnavailableError(f"命令执行超时 ({timeout}s): {' '.join(args)}",
                                    ErrorCode.TIMEOUT_ERROR)
    finally:
        # 外部取消时子进程同样需要回收
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()

    return (
        process.returncode,
        stdout.decode('utf-8', errors='replace'),
        stderr.decode('utf-8', errors='replace')
    )


class SystemdSupervisor:
    """通过 systemctl 和 journalctl 查询与控制节点服务"""

    def __init__(self, service_name: str, timeout: float = 10, control_timeout: float = 90):
        """
        初始化服务管理器

        Args:
            service_name: systemd 单元名称
            timeout: 查询命令的超时时间（秒）
            control_timeout: 启停命令的超时时间（秒）
        """
        self.service_name = service_name
        self.timeout = timeout
        self.control_timeout = control_timeout
        self.logger = get_logger(f'supervisor.{service_name}')

    async def show(self, *properties: str) -> Dict[str, str]:
        """
        读取单元属性

        Args:
            properties: 属性名，如 ActiveState、MainPID

        Returns:
            Dict[str, str]: 属性名到值的映射
        """
        args = ['systemctl', 'show', self.service_name, '--no-pager']
        for prop in properties:
            args.append(f'--property={prop}')

        returncode, stdout, stderr = await run_command(args, self.timeout)
        if returncode != 0:
            raise ProbeUnavailableError(
                f"systemctl show 失败 (返回码 {returncode}): {stderr.strip()}")

        return self.parse_properties(stdout)

    @staticmethod
    def parse_properties(output: str) -> Dict[str, str]:
        """解析 ``Key=Value`` 形式的输出"""
        values = {}
        for line in output.splitlines():
            key, sep, value = line.partition('=')
            if sep:
                values[key.strip()] = value.strip()
        return values

    async def active_state(self) -> str:
        state = await self.show('ActiveState')
        return state.get('ActiveState', 'unknown') or 'unknown'

    async def is_active(self) -> bool:
        """服务是否处于 active 状态"""
        return await self.active_state() == 'active'

    async def main_pid(self) -> Optional[int]:
        """
        获取服务主进程ID

        Returns:
            Optional[int]: 进程ID，服务未运行时为 None
        """
        state = await self.show('MainPID')
        try:
            pid = int(state.get('MainPID', '0'))
        except ValueError:
            return None
        return pid if pid > 0 else None

    async def recent_errors(self, window_seconds: float,
                            tail: int = 5) -> Tuple[int, List[str]]:
        """
        统计时间窗口内的错误级别日志

        Args:
            window_seconds: 时间窗口（秒）
            tail: 返回的最近日志条数

        Returns:
            tuple: (错误日志条数, 最近的若干条日志内容)
        """
        since = datetime.now() - timedelta(seconds=window_seconds)
        args = [
            'journalctl', '-u', self.service_name,
            '--since', since.strftime('%Y-%m-%d %H:%M:%S'),
            '-p', 'err', '--no-pager', '-q', '-o', 'json'
        ]

        returncode, stdout, stderr = await run_command(args, self.timeout)
        if returncode != 0:
            raise ProbeUnavailableError(
                f"journalctl 执行失败 (返回码 {returncode}): {stderr.strip()}")

        messages = []
        for line in stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                # 非JSON行按原样计数
                messages.append(line)
                continue
            messages.append(self._entry_message(entry))

        return len(messages), messages[-tail:] if tail > 0 else []

    @staticmethod
    def _entry_message(entry: Dict) -> str:
        message = entry.get('MESSAGE', '')
        # 二进制内容以字节数组形式出现
        if isinstance(message, list):
            message = bytes(b for b in message if isinstance(b, int)).decode(
                'utf-8', errors='replace')
        return str(message)

    async def restart(self) -> bool:
        """重启服务"""
        return await self._control('restart')

    async def stop(self) -> bool:
        """停止服务"""
        return await self._control('stop')

    async def _control(self, action: str) -> bool:
        self.logger.info(f"执行 systemctl {action} {self.service_name}")
        returncode, _, stderr = await run_command(
            ['systemctl', action, self.service_name], self.control_timeout)
        if returncode != 0:
            self.logger.error(
                f"systemctl {action} {self.service_name} 失败: {stderr.strip()}")
            return False
        self.logger.info(f"systemctl {action} {self.service_name} 完成")
        return True

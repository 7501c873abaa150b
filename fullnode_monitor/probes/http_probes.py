"""基于HTTP的探针：指标接口、JSON-RPC、同步状态、外网连通性"""

import asyncio
import json
from typing import Any, List, Optional

import aiohttp

from .base import BaseProbe
from .factory import register_probe
from ..models.health_check import ProbeResult, Severity
from ..utils.exceptions import ProbeUnavailableError, ErrorCode


def parse_metric_samples(text: str, prefix: str) -> List[str]:
    """
    从Prometheus文本格式中提取以指定前缀开头的样本行

    Args:
        text: 指标接口返回的文本
        prefix: 指标名前缀

    Returns:
        List[str]: 匹配的样本行
    """
    samples = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        if line.startswith(prefix):
            samples.append(line)
    return samples


async def call_json_rpc(session: aiohttp.ClientSession, url: str, method: str) -> Any:
    """
    调用不带参数的JSON-RPC方法

    Args:
        session: HTTP会话
        url: RPC地址
        method: 方法名

    Returns:
        Any: 响应中的 result 字段

    Raises:
        ProbeUnavailableError: 网络错误、超时或响应中没有 result 字段
    """
    payload = {'jsonrpc': '2.0', 'method': method, 'id': 1}

    try:
        async with session.post(url, json=payload) as response:
            content = await response.text()
    except aiohttp.ClientError as e:
        raise ProbeUnavailableError(f"RPC请求失败: {e}", cause=e)
    except asyncio.TimeoutError:
        raise ProbeUnavailableError("RPC请求超时", ErrorCode.TIMEOUT_ERROR)

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ProbeUnavailableError(f"RPC响应不是有效的JSON: {content[:200]}",
                                    ErrorCode.INVALID_RESPONSE, cause=e)

    if not isinstance(data, dict) or 'result' not in data:
        error = data.get('error') if isinstance(data, dict) else None
        raise ProbeUnavailableError(f"RPC响应缺少 result 字段: {error or content[:200]}",
                                    ErrorCode.INVALID_RESPONSE)

    return data['result']


class HttpProbe(BaseProbe):
    """HTTP探针基类，每次检查使用独立的会话和超时"""

    def create_session(self) -> aiohttp.ClientSession:
        timeout = aiohttp.ClientTimeout(total=self.get_timeout())
        return aiohttp.ClientSession(timeout=timeout)


@register_probe('metrics_endpoint')
class MetricsEndpointProbe(HttpProbe):
    """检查指标接口是否返回节点指标"""

    failure_severity = Severity.CRITICAL
    alert_subject = "服务异常"

    async def probe(self) -> ProbeResult:
        url = self.config.metrics_url
        prefix = self.config.metrics_prefix

        try:
            async with self.create_session() as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        return self.failed(f"指标接口返回状态码 {response.status}: {url}")
                    content = await response.text()
        except aiohttp.ClientError as e:
            return self.failed(f"指标接口无响应: {e}")
        except asyncio.TimeoutError:
            return self.failed(f"指标接口请求超时: {url}")

        samples = parse_metric_samples(content, prefix)
        if not samples:
            return self.failed(f"指标接口无 {prefix} 前缀的数据", observation=0)

        return self.passed(len(samples), f"指标接口正常，{prefix} 指标数量: {len(samples)}")


@register_probe('rpc_reachable')
class RpcReachableProbe(HttpProbe):
    """检查JSON-RPC接口是否正常响应"""

    alert_subject = "RPC异常"

    async def probe(self) -> ProbeResult:
        try:
            async with self.create_session() as session:
                result = await call_json_rpc(session, self.config.rpc_url,
                                             self.config.rpc_method)
        except ProbeUnavailableError as e:
            return self.failed(f"RPC接口无法正常响应: {e.message}")

        return self.passed(str(result), f"RPC接口正常，{self.config.rpc_method} = {result}")


@register_probe('sync_status')
class SyncStatusProbe(HttpProbe):
    """检查本地检查点，配置了参考节点时计算落后的检查点数量"""

    alert_subject = "同步状态异常"

    @staticmethod
    def _as_checkpoint(value: Any) -> Optional[int]:
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    async def probe(self) -> ProbeResult:
        try:
            async with self.create_session() as session:
                local_result = await call_json_rpc(session, self.config.rpc_url,
                                                   self.config.rpc_method)
        except ProbeUnavailableError as e:
            return self.failed(f"无法获取本地检查点: {e.message}")

        local_checkpoint = self._as_checkpoint(local_result)
        if local_checkpoint is None:
            return self.failed(f"本地检查点格式无效: {local_result!r}")

        reference_url = self.config.reference_rpc_url
        if not reference_url:
            return self.passed(None, f"本地检查点: {local_checkpoint}")

        try:
            async with self.create_session() as session:
                remote_result = await call_json_rpc(session, reference_url,
                                                    self.config.rpc_method)
        except ProbeUnavailableError as e:
            return self.unknown(f"无法获取参考节点检查点: {e.message}")

        remote_checkpoint = self._as_checkpoint(remote_result)
        if remote_checkpoint is None:
            return self.unknown(f"参考节点检查点格式无效: {remote_result!r}")

        lag = max(0, remote_checkpoint - local_checkpoint)
        return self.passed(lag, f"本地检查点: {local_checkpoint}, "
                                f"参考检查点: {remote_checkpoint}, 落后: {lag}")


@register_probe('network')
class NetworkProbe(HttpProbe):
    """检查到外部检查点服务器的网络连通性"""

    alert_subject = "网络连接异常"

    async def probe(self) -> ProbeResult:
        url = self.config.network_check_url

        try:
            async with self.create_session() as session:
                async with session.get(url) as response:
                    status = response.status
        except aiohttp.ClientError as e:
            return self.failed(f"无法连接到 {url}: {e}")
        except asyncio.TimeoutError:
            return self.failed(f"连接 {url} 超时")

        return self.passed(status, f"网络连接正常 ({url} 返回 {status})")

"""HTTP探针测试"""

import asyncio
import json
from unittest.mock import patch

import aiohttp
import pytest

from fullnode_monitor.models.health_check import ProbeStatus, Severity
from fullnode_monitor.probes.http_probes import (MetricsEndpointProbe, NetworkProbe,
                                                 RpcReachableProbe, SyncStatusProbe,
                                                 call_json_rpc, parse_metric_samples)
from fullnode_monitor.services.config_manager import MonitorConfig
from fullnode_monitor.utils.exceptions import ProbeUnavailableError

METRICS_TEXT = """# HELP sui_current_checkpoint current checkpoint
# TYPE sui_current_checkpoint gauge
sui_current_checkpoint 12345
sui_connected_peers 42

process_cpu_seconds_total 9.1
"""


class FakeResponse:
    """模拟aiohttp响应"""

    def __init__(self, status=200, text=''):
        self.status = status
        self._text = text

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """按URL返回预设响应的模拟会话，值为异常时抛出"""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def _respond(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        outcome = self.routes[url]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def get(self, url, **kwargs):
        return self._respond('GET', url, **kwargs)

    def post(self, url, **kwargs):
        return self._respond('POST', url, **kwargs)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


def rpc_response(result):
    return FakeResponse(200, json.dumps({'jsonrpc': '2.0', 'id': 1, 'result': result}))


class TestParseMetricSamples:
    """指标文本解析测试"""

    def test_prefix_filter_skips_comments(self):
        samples = parse_metric_samples(METRICS_TEXT, 'sui_')

        assert samples == ['sui_current_checkpoint 12345', 'sui_connected_peers 42']

    def test_no_samples(self):
        assert parse_metric_samples('# only comments\n', 'sui_') == []


class TestCallJsonRpc:
    """JSON-RPC调用测试"""

    URL = 'http://localhost:9000'

    @pytest.mark.asyncio
    async def test_returns_result(self):
        session = FakeSession({self.URL: rpc_response('98765')})

        result = await call_json_rpc(session, self.URL, 'sui_getLatestCheckpointSequenceNumber')

        assert result == '98765'
        method, url, kwargs = session.requests[0]
        assert method == 'POST'
        assert kwargs['json'] == {'jsonrpc': '2.0',
                                  'method': 'sui_getLatestCheckpointSequenceNumber', 'id': 1}

    @pytest.mark.asyncio
    async def test_error_response(self):
        body = json.dumps({'jsonrpc': '2.0', 'id': 1, 'error': {'code': -32601}})
        session = FakeSession({self.URL: FakeResponse(200, body)})

        with pytest.raises(ProbeUnavailableError):
            await call_json_rpc(session, self.URL, 'missing')

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        session = FakeSession({self.URL: FakeResponse(502, '<html>Bad Gateway</html>')})

        with pytest.raises(ProbeUnavailableError):
            await call_json_rpc(session, self.URL, 'm')

    @pytest.mark.asyncio
    async def test_connection_error(self):
        session = FakeSession({self.URL: aiohttp.ClientConnectionError('refused')})

        with pytest.raises(ProbeUnavailableError):
            await call_json_rpc(session, self.URL, 'm')


class HttpProbeTestCase:
    """HTTP探针测试基类"""

    probe_class = None
    probe_name = ''

    def make_probe(self, routes, **overrides):
        config = MonitorConfig.from_dict(overrides)
        probe = self.probe_class(self.probe_name, config)
        session = FakeSession(routes)
        patcher = patch.object(probe, 'create_session', return_value=session)
        patcher.start()
        self._patchers.append(patcher)
        return probe

    def setup_method(self):
        self._patchers = []

    def teardown_method(self):
        for patcher in self._patchers:
            patcher.stop()


class TestMetricsEndpointProbe(HttpProbeTestCase):
    """指标接口探针测试"""

    probe_class = MetricsEndpointProbe
    probe_name = 'metrics_endpoint'
    URL = 'http://localhost:9184/metrics'

    def test_failure_is_critical(self):
        assert MetricsEndpointProbe.failure_severity is Severity.CRITICAL

    @pytest.mark.asyncio
    async def test_pass(self):
        probe = self.make_probe({self.URL: FakeResponse(200, METRICS_TEXT)})

        result = await probe.probe()

        assert result.status is ProbeStatus.PASS
        assert result.observation == 2

    @pytest.mark.asyncio
    async def test_no_prefixed_samples(self):
        probe = self.make_probe({self.URL: FakeResponse(200, 'go_goroutines 10\n')})

        result = await probe.probe()

        assert result.status is ProbeStatus.FAIL
        assert result.observation == 0

    @pytest.mark.asyncio
    async def test_bad_status(self):
        probe = self.make_probe({self.URL: FakeResponse(503, '')})

        result = await probe.probe()
        assert result.status is ProbeStatus.FAIL
        assert '503' in result.detail

    @pytest.mark.asyncio
    async def test_endpoint_down(self):
        probe = self.make_probe({self.URL: aiohttp.ClientConnectionError('refused')})

        result = await probe.probe()
        assert result.status is ProbeStatus.FAIL


class TestRpcReachableProbe(HttpProbeTestCase):
    """RPC探针测试"""

    probe_class = RpcReachableProbe
    probe_name = 'rpc_reachable'
    URL = 'http://localhost:9000'

    @pytest.mark.asyncio
    async def test_pass(self):
        probe = self.make_probe({self.URL: rpc_response('1000')})

        result = await probe.probe()
        assert result.status is ProbeStatus.PASS
        assert result.observation == '1000'

    @pytest.mark.asyncio
    async def test_timeout(self):
        probe = self.make_probe({self.URL: asyncio.TimeoutError()})

        result = await probe.probe()
        assert result.status is ProbeStatus.FAIL


class TestSyncStatusProbe(HttpProbeTestCase):
    """同步状态探针测试"""

    probe_class = SyncStatusProbe
    probe_name = 'sync_status'
    LOCAL = 'http://localhost:9000'
    REMOTE = 'https://fullnode.example.com'

    @pytest.mark.asyncio
    async def test_local_only(self):
        probe = self.make_probe({self.LOCAL: rpc_response('500')})

        result = await probe.probe()

        assert result.status is ProbeStatus.PASS
        assert result.observation is None
        assert '500' in result.detail

    @pytest.mark.asyncio
    async def test_lag_against_reference(self):
        probe = self.make_probe({self.LOCAL: rpc_response('500'),
                                 self.REMOTE: rpc_response('750')},
                                reference_rpc_url=self.REMOTE)

        result = await probe.probe()

        assert result.status is ProbeStatus.PASS
        assert result.observation == 250

    @pytest.mark.asyncio
    async def test_local_ahead_reports_zero_lag(self):
        probe = self.make_probe({self.LOCAL: rpc_response('800'),
                                 self.REMOTE: rpc_response('750')},
                                reference_rpc_url=self.REMOTE)

        result = await probe.probe()
        assert result.observation == 0

    @pytest.mark.asyncio
    async def test_reference_unreachable_is_unknown(self):
        probe = self.make_probe({self.LOCAL: rpc_response('500'),
                                 self.REMOTE: aiohttp.ClientConnectionError('refused')},
                                reference_rpc_url=self.REMOTE)

        result = await probe.probe()
        assert result.status is ProbeStatus.UNKNOWN

    @pytest.mark.asyncio
    async def test_invalid_local_checkpoint(self):
        probe = self.make_probe({self.LOCAL: rpc_response({'unexpected': True})})

        result = await probe.probe()
        assert result.status is ProbeStatus.FAIL


class TestNetworkProbe(HttpProbeTestCase):
    """网络连通性探针测试"""

    probe_class = NetworkProbe
    probe_name = 'network'
    URL = 'https://checkpoints.mainnet.sui.io'

    @pytest.mark.asyncio
    async def test_any_response_passes(self):
        probe = self.make_probe({self.URL: FakeResponse(404, 'not found')})

        result = await probe.probe()
        assert result.status is ProbeStatus.PASS
        assert result.observation == 404

    @pytest.mark.asyncio
    async def test_unreachable(self):
        probe = self.make_probe({self.URL: aiohttp.ClientConnectionError('dns failure')})

        result = await probe.probe()
        assert result.status is ProbeStatus.FAIL

"""探针模块"""

from .base import BaseProbe
from .factory import ProbeFactory, probe_factory, register_probe, DEFAULT_PROBE_ORDER
from .supervisor import SystemdSupervisor, run_command
from .service_probe import ServiceActiveProbe
from .http_probes import (MetricsEndpointProbe, RpcReachableProbe, SyncStatusProbe,
                          NetworkProbe, call_json_rpc, parse_metric_samples)
from .resource_probes import DiskUsageProbe, MemoryUsageProbe, CpuUsageProbe, ErrorLogProbe

__all__ = ['BaseProbe', 'ProbeFactory', 'probe_factory', 'register_probe',
           'DEFAULT_PROBE_ORDER', 'SystemdSupervisor', 'run_command',
           'ServiceActiveProbe', 'MetricsEndpointProbe', 'RpcReachableProbe',
           'SyncStatusProbe', 'NetworkProbe', 'call_json_rpc', 'parse_metric_samples',
           'DiskUsageProbe', 'MemoryUsageProbe', 'CpuUsageProbe', 'ErrorLogProbe']

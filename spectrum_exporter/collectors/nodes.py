# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
Node canister performance counters.

lsnodecanisterstats returns one row per (node, stat name). Percentages are
turned into 0-1 ratios, MB/s into bytes/s, and IOPS are kept as they are.
"""

import logging

from prometheus_client import CollectorRegistry, Gauge

from spectrum_exporter.collectors.base import (
    StatMetric, apply_stat, fetch_records, megabytes_to_bytes, percent_to_ratio, unchanged
)
from spectrum_exporter.connection import FetchError, SpectrumSession
from spectrum_exporter.schema.models import NodeStat

LOG = logging.getLogger(__name__)

# Registration order of the gauges
NODE_METRICS = (
    ('cpu', 'spectrum_node_system_usage_ratio', 'Current ratio of allocated CPU for system'),
    ('compression_cpu', 'spectrum_node_compression_usage_ratio', 'Current ratio of allocated CPU for compression'),
    ('write_cache', 'spectrum_node_write_cache_usage_ratio', 'Ratio of the write cache usage for the node'),
    ('total_cache', 'spectrum_node_total_cache_usage_ratio',
     'Total percentage for both the write and read cache usage for the node'),
    ('fc_bytes', 'spectrum_node_fc_bps', 'Current bytes-per-second being transferred over Fibre Channel'),
    ('fc_io', 'spectrum_node_fc_iops', 'Current I/O-per-second being transferred over Fibre Channel'),
    ('iscsi_bytes', 'spectrum_node_iscsi_bps', 'Current bytes-per-second being transferred over iSCSI'),
    ('iscsi_io', 'spectrum_node_iscsi_iops', 'Current I/O-per-second being transferred over iSCSI'),
    ('sas_bytes', 'spectrum_node_sas_bps', 'Current bytes-per-second being transferred over backend SAS'),
    ('sas_io', 'spectrum_node_sas_iops', 'Current I/O-per-second being transferred over backend SAS'),
)

NODE_STATS = {
    'cpu_pc': StatMetric('cpu', percent_to_ratio),
    'compression_cpu_pc': StatMetric('compression_cpu', percent_to_ratio),
    'write_cache_pc': StatMetric('write_cache', percent_to_ratio),
    'total_cache_pc': StatMetric('total_cache', percent_to_ratio),
    'fc_mb': StatMetric('fc_bytes', megabytes_to_bytes),
    'fc_io': StatMetric('fc_io', unchanged),
    'iscsi_mb': StatMetric('iscsi_bytes', megabytes_to_bytes),
    'iscsi_io': StatMetric('iscsi_io', unchanged),
    'sas_mb': StatMetric('sas_bytes', megabytes_to_bytes),
    'sas_io': StatMetric('sas_io', unchanged),
}


def probe_node_stats(session: SpectrumSession, registry: CollectorRegistry) -> bool:
    gauges = {
        key: Gauge(name, documentation, ['id'], registry=registry)
        for key, name, documentation in NODE_METRICS
    }

    try:
        stats = fetch_records(session, 'rest/lsnodecanisterstats', NodeStat)
    except FetchError as e:
        LOG.error(f"[NODE_STATS] {e}")
        return False

    for s in stats:
        apply_stat(gauges, NODE_STATS, [s.node_id], s.stat_name, s.stat_current)
    return True

# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
Storage pool (mdisk group) collector.

Capacities come back as base-2 byte sizes such as "9.94TB". A value that
cannot be parsed is logged and only that series is left out.
"""

import logging

from prometheus_client import CollectorRegistry, Gauge

from spectrum_exporter.collectors.base import ONLINE_OFFLINE, fetch_records, set_one_hot
from spectrum_exporter.connection import FetchError, SpectrumSession
from spectrum_exporter.schema.models import Pool
from spectrum_exporter.utils import parse_base2_bytes, parse_int

LOG = logging.getLogger(__name__)

# Gauge key -> Pool attribute holding the byte size string
CAPACITY_FIELDS = (
    ('free', 'free_capacity'),
    ('capacity', 'capacity'),
    ('used', 'used_capacity'),
)


def probe_pools(session: SpectrumSession, registry: CollectorRegistry) -> bool:
    labels = ['id', 'name']
    status = Gauge('spectrum_pool_status', 'Status of pool', labels + ['status'], registry=registry)
    volume_count = Gauge('spectrum_pool_volume_count', 'Number of volumes associated with pool',
                         labels, registry=registry)
    gauges = {
        'capacity': Gauge('spectrum_pool_capacity_bytes', 'Capacity of pool in bytes', labels, registry=registry),
        'free': Gauge('spectrum_pool_free_bytes', 'Free bytes in pool', labels, registry=registry),
        'used': Gauge('spectrum_pool_used_bytes', 'Used bytes in pool', labels, registry=registry),
    }

    try:
        pools = fetch_records(session, 'rest/lsmdiskgrp', Pool)
    except FetchError as e:
        LOG.error(f"[POOLS] {e}")
        return False

    for p in pools:
        set_one_hot(status, [p.id, p.name], p.status, ONLINE_OFFLINE)

        try:
            volume_count.labels(p.id, p.name).set(parse_int(p.vdisk_count))
        except ValueError as e:
            LOG.warning(f"[POOLS] Failed to parse vdisk_count of pool {p.name}: {e}")

        for key, attr in CAPACITY_FIELDS:
            raw = getattr(p, attr)
            try:
                size = parse_base2_bytes(raw)
            except ValueError as e:
                LOG.warning(f"[POOLS] Failed to parse {attr} {raw!r} of pool {p.name}: {e}")
                continue
            gauges[key].labels(p.id, p.name).set(size)
    return True

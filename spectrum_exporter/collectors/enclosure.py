# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
Enclosure collectors: environmental stats (power, temperature) and PSU status.
"""

import logging

from prometheus_client import CollectorRegistry, Gauge

from spectrum_exporter.collectors.base import (
    ONLINE_OFFLINE_DEGRADED, StatMetric, apply_stat, fetch_records, set_one_hot, unchanged
)
from spectrum_exporter.connection import FetchError, SpectrumSession
from spectrum_exporter.schema.models import EnclosurePSU, EnclosureStat

LOG = logging.getLogger(__name__)

ENCLOSURE_STATS = {
    'power_w': StatMetric('power', unchanged),
    'temp_c': StatMetric('temperature', unchanged),
}


def probe_enclosure_stats(session: SpectrumSession, registry: CollectorRegistry) -> bool:
    gauges = {
        'power': Gauge('spectrum_power_watts', 'Current power draw of enclosure in watts',
                       ['enclosure'], registry=registry),
        'temperature': Gauge('spectrum_temperature', 'Current enclosure temperature in celsius',
                             ['enclosure'], registry=registry),
    }

    try:
        stats = fetch_records(session, 'rest/lsenclosurestats', EnclosureStat)
    except FetchError as e:
        LOG.error(f"[ENCLOSURE_STATS] {e}")
        return False

    for s in stats:
        apply_stat(gauges, ENCLOSURE_STATS, [s.enclosure_id], s.stat_name, s.stat_current)
    return True


def probe_enclosure_psus(session: SpectrumSession, registry: CollectorRegistry) -> bool:
    status = Gauge('spectrum_psu_status', 'Status of PSU',
                   ['enclosure', 'id', 'status'], registry=registry)

    try:
        psus = fetch_records(session, 'rest/lsenclosurepsu', EnclosurePSU)
    except FetchError as e:
        LOG.error(f"[ENCLOSURE_PSU] {e}")
        return False

    for psu in psus:
        set_one_hot(status, [psu.enclosure_id, psu.psu_id], psu.status, ONLINE_OFFLINE_DEGRADED)
    return True

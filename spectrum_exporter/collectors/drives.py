# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

import logging

from prometheus_client import CollectorRegistry, Gauge

from spectrum_exporter.collectors.base import ONLINE_OFFLINE_DEGRADED, fetch_records, set_one_hot
from spectrum_exporter.connection import FetchError, SpectrumSession
from spectrum_exporter.schema.models import Drive

LOG = logging.getLogger(__name__)


def probe_drives(session: SpectrumSession, registry: CollectorRegistry) -> bool:
    """Drive status, keyed by enclosure, slot and drive id."""
    status = Gauge('spectrum_drive_status', 'Status of drive',
                   ['enclosure', 'slot_id', 'id', 'status'], registry=registry)

    try:
        drives = fetch_records(session, 'rest/lsdrive', Drive)
    except FetchError as e:
        LOG.error(f"[DRIVES] {e}")
        return False

    for d in drives:
        set_one_hot(status, [d.enclosure_id, d.slot_id, d.id], d.status, ONLINE_OFFLINE_DEGRADED)
    return True

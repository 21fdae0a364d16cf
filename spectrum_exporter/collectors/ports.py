# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
Host port collectors for Fibre Channel and Ethernet/IP ports.
"""

import logging

from prometheus_client import CollectorRegistry, Gauge

from spectrum_exporter.collectors.base import fetch_records, set_one_hot
from spectrum_exporter.connection import FetchError, SpectrumSession
from spectrum_exporter.schema.models import FCPort, IPPort
from spectrum_exporter.utils import parse_fc_speed, parse_ip_speed

LOG = logging.getLogger(__name__)

PORT_LABELS = ['node_id', 'adapter_location', 'adapter_port_id']

FC_PORT_STATUSES = ('active', 'inactive_unconfigured', 'inactive_configured')
IP_PORT_STATES = ('configured', 'unconfigured', 'management_only')


def probe_fc_ports(session: SpectrumSession, registry: CollectorRegistry) -> bool:
    status = Gauge('spectrum_fc_port_status', 'Status of Fibre Channel port',
                   PORT_LABELS + ['wwpn', 'status'], registry=registry)
    speed = Gauge('spectrum_fc_port_speed_bps', 'Operational speed of port in bits per second',
                  PORT_LABELS, registry=registry)

    try:
        ports = fetch_records(session, 'rest/lsportfc', FCPort)
    except FetchError as e:
        LOG.error(f"[FC_PORTS] {e}")
        return False

    for p in ports:
        port = [p.node_id, p.adapter_location, p.adapter_port_id]
        set_one_hot(status, port + [p.wwpn], p.status, FC_PORT_STATUSES)
        speed.labels(*port).set(parse_fc_speed(p.port_speed))
    return True


def probe_ip_ports(session: SpectrumSession, registry: CollectorRegistry) -> bool:
    state = Gauge('spectrum_ip_port_state', 'Configuration state of Ethernet/IP port',
                  PORT_LABELS + ['mac', 'state'], registry=registry)
    active = Gauge('spectrum_ip_port_link_active', 'Whether link is active',
                   PORT_LABELS + ['mac'], registry=registry)
    speed = Gauge('spectrum_ip_port_speed_bps', 'Operational speed of port in bits per second',
                  PORT_LABELS, registry=registry)

    try:
        ports = fetch_records(session, 'rest/lsportip', IPPort)
    except FetchError as e:
        LOG.error(f"[IP_PORTS] {e}")
        return False

    for p in ports:
        port = [p.node_id, p.adapter_location, p.adapter_port_id]
        set_one_hot(state, port + [p.mac], p.state, IP_PORT_STATES)
        active.labels(*port, p.mac).set(1 if p.link_state == 'active' else 0)
        speed.labels(*port).set(parse_ip_speed(p.speed))
    return True

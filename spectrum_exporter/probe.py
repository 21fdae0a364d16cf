# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
Probe orchestration: normalize the target, resolve its credentials, log in,
then run every resource collector against the one session.

All collectors run even when an earlier one fails; the overall result is
the AND of them and each outcome is exported as spectrum_collector_success.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple
from urllib.parse import urlsplit

from prometheus_client import CollectorRegistry, Gauge

from spectrum_exporter.collectors.drives import probe_drives
from spectrum_exporter.collectors.enclosure import probe_enclosure_psus, probe_enclosure_stats
from spectrum_exporter.collectors.nodes import probe_node_stats
from spectrum_exporter.collectors.pools import probe_pools
from spectrum_exporter.collectors.ports import probe_fc_ports, probe_ip_ports
from spectrum_exporter.config import CredentialError, CredentialMap
from spectrum_exporter.connection import AuthError, Deadline, SpectrumSession, authenticate

LOG = logging.getLogger(__name__)

Collector = Callable[[SpectrumSession, CollectorRegistry], bool]

# Run order; also the order of metric families in the response
COLLECTORS: Tuple[Tuple[str, Collector], ...] = (
    ('enclosure_stats', probe_enclosure_stats),
    ('enclosure_psu', probe_enclosure_psus),
    ('pools', probe_pools),
    ('drives', probe_drives),
    ('node_stats', probe_node_stats),
    ('fc_ports', probe_fc_ports),
    ('ip_ports', probe_ip_ports),
)


class ProbeRequestError(ValueError):
    """The probe request itself is invalid; nothing was sent upstream."""


@dataclass
class ProbeResult:
    success: bool
    duration: float
    collectors: Dict[str, bool] = field(default_factory=dict)


def normalize_target(target: str) -> str:
    """
    Reduce a target URL to "scheme://host[:port]".

    User info, path, query and fragment are dropped; only this form is used
    for the credential lookup and for every upstream request.

    Raises:
        ProbeRequestError: If the URL cannot be parsed or is not http/https
    """
    try:
        parts = urlsplit(target)
        parts.port  # validates the port
    except ValueError as e:
        raise ProbeRequestError(f"invalid target URL: {e}") from e
    if parts.scheme not in ('http', 'https'):
        raise ProbeRequestError(f"Unsupported scheme {parts.scheme!r}")
    host = parts.netloc.rpartition('@')[2]
    return f"{parts.scheme}://{host}"


def run_collectors(session: SpectrumSession, registry: CollectorRegistry, collector_success: Gauge,
                   collectors=COLLECTORS) -> Dict[str, bool]:
    results = {}
    for name, collector in collectors:
        ok = collector(session, registry)
        results[name] = ok
        collector_success.labels(name).set(1 if ok else 0)
        if not ok:
            LOG.warning(f"Collector {name} failed for {session}")
    return results


def probe(target: str, registry: CollectorRegistry, transport, credentials: CredentialMap,
          timeout: float, collectors=COLLECTORS) -> ProbeResult:
    """
    Probe one array and register its metrics into registry.

    Args:
        target: Target URL from the scrape request
        registry: Fresh per-request registry
        transport: Shared Transport; provides a new requests.Session per probe
        credentials: Credential map loaded at startup
        timeout: Seconds allowed for authentication plus all fetches

    Returns:
        ProbeResult; success is False on credential, authentication or
        collector failure. Metrics registered before a failure stay in
        the registry.

    Raises:
        ProbeRequestError: For an unparseable target or unsupported scheme
    """
    start = time.monotonic()
    tgt = normalize_target(target)

    collector_success = Gauge('spectrum_collector_success', 'Whether or not the collector succeeded',
                              ['collector'], registry=registry)

    try:
        auth = credentials.lookup(tgt)
    except CredentialError as e:
        LOG.error(f"Probe of {tgt} failed: {e}")
        return ProbeResult(False, time.monotonic() - start)

    deadline = Deadline(timeout)
    # Not closed afterwards: closing a requests.Session closes the shared adapter
    http = transport.session()
    try:
        session = authenticate(tgt, auth.user, auth.password, http, deadline)
    except AuthError as e:
        LOG.error(f"Probe of {tgt} failed: {e}")
        return ProbeResult(False, time.monotonic() - start)

    results = run_collectors(session, registry, collector_success, collectors)
    return ProbeResult(all(results.values()), time.monotonic() - start, results)

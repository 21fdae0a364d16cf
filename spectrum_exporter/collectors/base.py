# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
Shared pieces of the resource collectors: fetching a collection into
record models, one-hot status expansion and stat-name dispatch tables.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence, Type, TypeVar

from prometheus_client import Gauge

from spectrum_exporter.connection import FetchError, SpectrumSession
from spectrum_exporter.utils import parse_int

LOG = logging.getLogger(__name__)

T = TypeVar('T')

ONLINE_OFFLINE_DEGRADED = ('online', 'offline', 'degraded')
ONLINE_OFFLINE = ('online', 'offline')


def fetch_records(session: SpectrumSession, path: str, model_class: Type[T]) -> List[T]:
    """
    Fetch a REST collection and build one model per JSON object.

    Raises:
        FetchError: If the fetch fails or the body is not a list of objects
    """
    data = session.fetch(path)
    if not isinstance(data, list):
        raise FetchError(path, f"expected a JSON array, got {type(data).__name__}")
    records = []
    for item in data:
        if not isinstance(item, dict):
            raise FetchError(path, f"expected JSON objects, got {type(item).__name__}")
        records.append(model_class.from_api_response(item))
    LOG.debug(f"[{path}] Got {len(records)} records from {session}")
    return records


def set_one_hot(gauge: Gauge, labels: Sequence[str], value: str, categories: Sequence[str]) -> bool:
    """
    Expand a categorical value into one 0/1 series per known category.

    Exactly one of the series is 1. A value outside categories produces no
    series at all and False is returned.
    """
    if value not in categories:
        LOG.debug(f"Ignoring unknown value {value!r} for {tuple(labels)}, expected one of {categories}")
        return False
    for category in categories:
        gauge.labels(*labels, category).set(1.0 if category == value else 0.0)
    return True


def percent_to_ratio(value: int) -> float:
    return value / 100.0


def megabytes_to_bytes(value: int) -> float:
    return float(value) * 1024 * 1024


def unchanged(value: int) -> float:
    return float(value)


@dataclass(frozen=True)
class StatMetric:
    """Target gauge (by key) and unit conversion for one upstream stat name."""
    metric: str
    transform: Callable[[int], float]


def apply_stat(gauges: dict, table: dict, labels: Sequence[str], stat_name: str, raw_value: str) -> None:
    """Dispatch one (stat_name, stat_current) row through a StatMetric table."""
    stat = table.get(stat_name)
    if stat is None:
        return
    try:
        value = parse_int(raw_value)
    except ValueError as e:
        LOG.warning(f"Failed to parse {stat_name} for {tuple(labels)}: {e}")
        return
    gauges[stat.metric].labels(*labels).set(stat.transform(value))

# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
Record schemas for the Spectrum Virtualize REST collections.

Every field is kept exactly as the API sent it. Numeric fields arrive as
quoted strings and are parsed by the collectors, so one bad value only
drops the metric that depends on it.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from spectrum_exporter.utils import get_field


def _str(data: Dict[str, Any], key: str) -> str:
    value = get_field(data, key)
    return '' if value is None else str(value)


@dataclass
class EnclosureStat:
    enclosure_id: str
    stat_name: str
    stat_current: str  # string-encoded integer
    _raw_data: Optional[Dict] = field(default=None, repr=False, compare=False)

    @staticmethod
    def from_api_response(data: Dict) -> 'EnclosureStat':
        return EnclosureStat(
            enclosure_id=_str(data, 'enclosure_id'),
            stat_name=_str(data, 'stat_name'),
            stat_current=_str(data, 'stat_current'),
            _raw_data=data.copy()
        )


@dataclass
class EnclosurePSU:
    enclosure_id: str
    psu_id: str
    status: str
    _raw_data: Optional[Dict] = field(default=None, repr=False, compare=False)

    @staticmethod
    def from_api_response(data: Dict) -> 'EnclosurePSU':
        return EnclosurePSU(
            enclosure_id=_str(data, 'enclosure_id'),
            psu_id=_str(data, 'psu_id'),
            status=_str(data, 'status'),
            _raw_data=data.copy()
        )


@dataclass
class Drive:
    id: str
    status: str
    enclosure_id: str
    slot_id: str
    use: str = ''
    capacity: str = ''
    mdisk_id: str = ''
    mdisk_name: str = ''
    _raw_data: Optional[Dict] = field(default=None, repr=False, compare=False)

    @staticmethod
    def from_api_response(data: Dict) -> 'Drive':
        return Drive(
            id=_str(data, 'id'),
            status=_str(data, 'status'),
            enclosure_id=_str(data, 'enclosure_id'),
            slot_id=_str(data, 'slot_id'),
            use=_str(data, 'use'),
            capacity=_str(data, 'capacity'),
            mdisk_id=_str(data, 'mdisk_id'),
            mdisk_name=_str(data, 'mdisk_name'),
            _raw_data=data.copy()
        )


@dataclass
class Pool:
    id: str
    name: str
    status: str
    vdisk_count: str  # string-encoded integer
    capacity: str  # base-2 byte size, e.g. "10.00TB"
    free_capacity: str
    used_capacity: str
    virtual_capacity: str = ''
    real_capacity: str = ''
    reclaimable_capacity: str = ''
    _raw_data: Optional[Dict] = field(default=None, repr=False, compare=False)

    @staticmethod
    def from_api_response(data: Dict) -> 'Pool':
        return Pool(
            id=_str(data, 'id'),
            name=_str(data, 'name'),
            status=_str(data, 'status'),
            vdisk_count=_str(data, 'vdisk_count'),
            capacity=_str(data, 'capacity'),
            free_capacity=_str(data, 'free_capacity'),
            used_capacity=_str(data, 'used_capacity'),
            virtual_capacity=_str(data, 'virtual_capacity'),
            real_capacity=_str(data, 'real_capacity'),
            reclaimable_capacity=_str(data, 'reclaimable_capacity'),
            _raw_data=data.copy()
        )


@dataclass
class NodeStat:
    node_id: str
    stat_name: str
    stat_current: str  # string-encoded integer
    _raw_data: Optional[Dict] = field(default=None, repr=False, compare=False)

    @staticmethod
    def from_api_response(data: Dict) -> 'NodeStat':
        return NodeStat(
            node_id=_str(data, 'node_id'),
            stat_name=_str(data, 'stat_name'),
            stat_current=_str(data, 'stat_current'),
            _raw_data=data.copy()
        )


@dataclass
class FCPort:
    node_id: str
    adapter_location: str
    adapter_port_id: str
    wwpn: str
    status: str
    port_speed: str  # e.g. "8Gb" or "N/A"
    type: str = ''
    _raw_data: Optional[Dict] = field(default=None, repr=False, compare=False)

    @staticmethod
    def from_api_response(data: Dict) -> 'FCPort':
        return FCPort(
            node_id=_str(data, 'node_id'),
            adapter_location=_str(data, 'adapter_location'),
            adapter_port_id=_str(data, 'adapter_port_id'),
            wwpn=_str(data, 'WWPN'),
            status=_str(data, 'status'),
            port_speed=_str(data, 'port_speed'),
            type=_str(data, 'type'),
            _raw_data=data.copy()
        )


@dataclass
class IPPort:
    node_id: str
    adapter_location: str
    adapter_port_id: str
    mac: str
    state: str
    link_state: str
    speed: str  # e.g. "10Gb/s", "100Mb/s"
    _raw_data: Optional[Dict] = field(default=None, repr=False, compare=False)

    @staticmethod
    def from_api_response(data: Dict) -> 'IPPort':
        return IPPort(
            node_id=_str(data, 'node_id'),
            adapter_location=_str(data, 'adapter_location'),
            adapter_port_id=_str(data, 'adapter_port_id'),
            mac=_str(data, 'MAC'),
            state=_str(data, 'state'),
            link_state=_str(data, 'link_state'),
            speed=_str(data, 'speed'),
            _raw_data=data.copy()
        )

import logging

import pytest
from prometheus_client import CollectorRegistry, Gauge

from spectrum_exporter.collectors.base import set_one_hot
from spectrum_exporter.collectors.drives import probe_drives
from spectrum_exporter.collectors.enclosure import probe_enclosure_psus, probe_enclosure_stats
from spectrum_exporter.collectors.nodes import probe_node_stats
from spectrum_exporter.collectors.pools import probe_pools
from spectrum_exporter.collectors.ports import probe_fc_ports, probe_ip_ports


def samples(registry, prefix):
    """All (name, labels, value) samples whose metric name starts with prefix."""
    out = []
    for metric in registry.collect():
        for s in metric.samples:
            if s.name.startswith(prefix):
                out.append((s.name, dict(s.labels), s.value))
    return out


def test_enclosure_stats_power_and_temperature(make_session):
    session = make_session({"/rest/lsenclosurestats": [
        {"enclosure_id": "1", "stat_name": "power_w", "stat_current": "427", "stat_peak": "430"},
        {"enclosure_id": "1", "stat_name": "temp_c", "stat_current": "26", "stat_peak": "27"},
        {"enclosure_id": "1", "stat_name": "temp_f", "stat_current": "78", "stat_peak": "80"},
    ]})
    registry = CollectorRegistry()

    assert probe_enclosure_stats(session, registry) is True
    assert sorted(samples(registry, "spectrum_")) == [
        ("spectrum_power_watts", {"enclosure": "1"}, 427.0),
        ("spectrum_temperature", {"enclosure": "1"}, 26.0),
    ]


def test_enclosure_stats_bad_value_skips_only_that_point(make_session, caplog):
    session = make_session({"/rest/lsenclosurestats": [
        {"enclosure_id": "1", "stat_name": "power_w", "stat_current": "n/a"},
        {"enclosure_id": "1", "stat_name": "temp_c", "stat_current": "26"},
    ]})
    registry = CollectorRegistry()

    with caplog.at_level(logging.WARNING):
        assert probe_enclosure_stats(session, registry) is True
    assert registry.get_sample_value("spectrum_power_watts", {"enclosure": "1"}) is None
    assert registry.get_sample_value("spectrum_temperature", {"enclosure": "1"}) == 26
    assert "power_w" in caplog.text


def test_enclosure_stats_fetch_failure(make_session, fake_response):
    session = make_session({"/rest/lsenclosurestats": fake_response(401, body=[])})
    registry = CollectorRegistry()
    assert probe_enclosure_stats(session, registry) is False
    assert samples(registry, "spectrum_") == []


@pytest.mark.parametrize("status", ["online", "offline", "degraded"])
def test_drive_status_is_one_hot(make_session, status):
    session = make_session({"/rest/lsdrive": [
        {"id": "7", "status": status, "enclosure_id": "1", "slot_id": "3", "use": "member"},
    ]})
    registry = CollectorRegistry()
    assert probe_drives(session, registry) is True

    values = {
        s: registry.get_sample_value("spectrum_drive_status",
                                     {"enclosure": "1", "slot_id": "3", "id": "7", "status": s})
        for s in ("online", "offline", "degraded")
    }
    assert values == {s: (1.0 if s == status else 0.0) for s in values}


def test_drive_unknown_status_emits_nothing(make_session):
    session = make_session({"/rest/lsdrive": [
        {"id": "7", "status": "service", "enclosure_id": "1", "slot_id": "3"},
    ]})
    registry = CollectorRegistry()
    assert probe_drives(session, registry) is True
    assert samples(registry, "spectrum_drive_status") == []


def test_psu_status(make_session):
    session = make_session({"/rest/lsenclosurepsu": [
        {"enclosure_id": "1", "psu_id": "1", "status": "online"},
        {"enclosure_id": "1", "psu_id": "2", "status": "degraded"},
    ]})
    registry = CollectorRegistry()
    assert probe_enclosure_psus(session, registry) is True

    def value(psu, status):
        return registry.get_sample_value("spectrum_psu_status", {"enclosure": "1", "id": psu, "status": status})

    assert (value("1", "online"), value("1", "offline"), value("1", "degraded")) == (1, 0, 0)
    assert (value("2", "online"), value("2", "offline"), value("2", "degraded")) == (0, 0, 1)


def test_pools(make_session):
    session = make_session({"/rest/lsmdiskgrp": [{
        "id": "0", "name": "Pool0", "status": "online", "vdisk_count": "12",
        "capacity": "10.00TB", "free_capacity": "9.94TB", "used_capacity": "60.00GB",
        "virtual_capacity": "2.00TB", "real_capacity": "60.00GB",
    }]})
    registry = CollectorRegistry()
    assert probe_pools(session, registry) is True

    labels = {"id": "0", "name": "Pool0"}
    assert registry.get_sample_value("spectrum_pool_status", dict(labels, status="online")) == 1
    assert registry.get_sample_value("spectrum_pool_status", dict(labels, status="offline")) == 0
    assert registry.get_sample_value("spectrum_pool_volume_count", labels) == 12
    assert registry.get_sample_value("spectrum_pool_capacity_bytes", labels) == 10 * 1024 ** 4
    assert registry.get_sample_value("spectrum_pool_free_bytes", labels) == 10929145580093
    assert registry.get_sample_value("spectrum_pool_used_bytes", labels) == 60 * 1024 ** 3


def test_pool_unparseable_capacity_drops_only_that_metric(make_session, caplog):
    session = make_session({"/rest/lsmdiskgrp": [{
        "id": "1", "name": "Pool1", "status": "offline", "vdisk_count": "3",
        "capacity": "lots", "free_capacity": "1.00GB", "used_capacity": "",
    }]})
    registry = CollectorRegistry()

    with caplog.at_level(logging.WARNING):
        assert probe_pools(session, registry) is True

    labels = {"id": "1", "name": "Pool1"}
    assert registry.get_sample_value("spectrum_pool_capacity_bytes", labels) is None
    assert registry.get_sample_value("spectrum_pool_used_bytes", labels) is None
    assert registry.get_sample_value("spectrum_pool_free_bytes", labels) == 1024 ** 3
    assert registry.get_sample_value("spectrum_pool_volume_count", labels) == 3
    assert registry.get_sample_value("spectrum_pool_status", dict(labels, status="offline")) == 1
    assert "'lots'" in caplog.text


def test_node_stats_unit_conversion(make_session):
    rows = [
        ("compression_cpu_pc", "24"),
        ("cpu_pc", "7"),
        ("write_cache_pc", "50"),
        ("total_cache_pc", "80"),
        ("fc_mb", "1"),
        ("fc_io", "1500"),
        ("iscsi_mb", "2"),
        ("iscsi_io", "30"),
        ("sas_mb", "3"),
        ("sas_io", "45"),
        ("drive_ms", "5"),
    ]
    session = make_session({"/rest/lsnodecanisterstats": [
        {"node_id": "1", "node_name": "node1", "stat_name": name, "stat_current": value, "stat_peak": value}
        for name, value in rows
    ]})
    registry = CollectorRegistry()
    assert probe_node_stats(session, registry) is True

    node = {"id": "1"}
    assert registry.get_sample_value("spectrum_node_compression_usage_ratio", node) == 0.24
    assert registry.get_sample_value("spectrum_node_system_usage_ratio", node) == 0.07
    assert registry.get_sample_value("spectrum_node_write_cache_usage_ratio", node) == 0.5
    assert registry.get_sample_value("spectrum_node_total_cache_usage_ratio", node) == 0.8
    assert registry.get_sample_value("spectrum_node_fc_bps", node) == 1048576
    assert registry.get_sample_value("spectrum_node_fc_iops", node) == 1500
    assert registry.get_sample_value("spectrum_node_iscsi_bps", node) == 2 * 1048576
    assert registry.get_sample_value("spectrum_node_iscsi_iops", node) == 30
    assert registry.get_sample_value("spectrum_node_sas_bps", node) == 3 * 1048576
    assert registry.get_sample_value("spectrum_node_sas_iops", node) == 45
    assert len(samples(registry, "spectrum_node_")) == 10


def test_fc_ports(make_session):
    session = make_session({"/rest/lsportfc": [
        {"id": "0", "node_id": "1", "adapter_location": "1", "adapter_port_id": "1",
         "WWPN": "500507680B21AC01", "status": "active", "port_speed": "8Gb", "type": "fc"},
        {"id": "1", "node_id": "1", "adapter_location": "1", "adapter_port_id": "2",
         "WWPN": "500507680B22AC01", "status": "inactive_unconfigured", "port_speed": "N/A", "type": "fc"},
    ]})
    registry = CollectorRegistry()
    assert probe_fc_ports(session, registry) is True

    port1 = {"node_id": "1", "adapter_location": "1", "adapter_port_id": "1"}
    port2 = dict(port1, adapter_port_id="2")
    assert registry.get_sample_value("spectrum_fc_port_speed_bps", port1) == 8000000000
    assert registry.get_sample_value("spectrum_fc_port_speed_bps", port2) == 0
    assert registry.get_sample_value(
        "spectrum_fc_port_status", dict(port1, wwpn="500507680B21AC01", status="active")) == 1
    assert registry.get_sample_value(
        "spectrum_fc_port_status", dict(port1, wwpn="500507680B21AC01", status="inactive_configured")) == 0
    assert registry.get_sample_value(
        "spectrum_fc_port_status", dict(port2, wwpn="500507680B22AC01", status="inactive_unconfigured")) == 1


def test_ip_ports(make_session):
    session = make_session({"/rest/lsportip": [
        {"node_id": "1", "adapter_location": "0", "adapter_port_id": "1", "MAC": "40:f2:e9:00:00:01",
         "state": "management_only", "link_state": "active", "speed": "1Gb/s"},
        {"node_id": "1", "adapter_location": "0", "adapter_port_id": "2", "MAC": "40:f2:e9:00:00:02",
         "state": "unconfigured", "link_state": "inactive", "speed": "100Mb/s"},
        {"node_id": "1", "adapter_location": "0", "adapter_port_id": "3", "MAC": "40:f2:e9:00:00:03",
         "state": "", "link_state": "", "speed": "NONE"},
    ]})
    registry = CollectorRegistry()
    assert probe_ip_ports(session, registry) is True

    p1 = {"node_id": "1", "adapter_location": "0", "adapter_port_id": "1"}
    p2 = dict(p1, adapter_port_id="2")
    p3 = dict(p1, adapter_port_id="3")
    assert registry.get_sample_value("spectrum_ip_port_speed_bps", p1) == 1000000000
    assert registry.get_sample_value("spectrum_ip_port_speed_bps", p2) == 100000000
    assert registry.get_sample_value("spectrum_ip_port_speed_bps", p3) == 0
    assert registry.get_sample_value("spectrum_ip_port_link_active", dict(p1, mac="40:f2:e9:00:00:01")) == 1
    assert registry.get_sample_value("spectrum_ip_port_link_active", dict(p2, mac="40:f2:e9:00:00:02")) == 0
    assert registry.get_sample_value(
        "spectrum_ip_port_state", dict(p1, mac="40:f2:e9:00:00:01", state="management_only")) == 1
    assert registry.get_sample_value(
        "spectrum_ip_port_state", dict(p2, mac="40:f2:e9:00:00:02", state="unconfigured")) == 1
    assert [s for s in samples(registry, "spectrum_ip_port_state") if s[1]["adapter_port_id"] == "3"] == []


def test_collection_that_is_not_a_list_fails(make_session):
    session = make_session({"/rest/lsportip": {"error": "unexpected"}})
    assert probe_ip_ports(session, CollectorRegistry()) is False


def test_registering_a_collector_twice_in_one_registry_is_an_error(make_session):
    session = make_session({"/rest/lsdrive": []})
    registry = CollectorRegistry()
    probe_drives(session, registry)
    with pytest.raises(ValueError):
        probe_drives(session, registry)


def test_set_one_hot_returns_false_for_unknown_value():
    registry = CollectorRegistry()
    gauge = Gauge("example_status", "doc", ["id", "status"], registry=registry)
    assert set_one_hot(gauge, ["a"], "up", ("up", "down")) is True
    assert set_one_hot(gauge, ["b"], "sideways", ("up", "down")) is False
    assert registry.get_sample_value("example_status", {"id": "a", "status": "down"}) == 0
    assert registry.get_sample_value("example_status", {"id": "b", "status": "up"}) is None

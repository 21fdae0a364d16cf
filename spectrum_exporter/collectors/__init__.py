"""
Collectors package for Spectrum Virtualize Exporter.

Each collector fetches one REST collection and registers its gauges into
the per-probe registry, returning True on success:
- enclosure.py: Enclosure power/temperature stats and PSU status
- drives.py: Drive status
- pools.py: Storage pool status, volume count and capacities
- nodes.py: Node canister CPU, cache and throughput counters
- ports.py: Fibre Channel and Ethernet/IP port status and speed
"""

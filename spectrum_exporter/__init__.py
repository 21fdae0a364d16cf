"""
Spectrum Virtualize Exporter.

Multi-target Prometheus exporter for IBM Spectrum Virtualize (SVC, FlashSystem,
Storwize) arrays. A scrape of /probe?target=https://array authenticates to the
array's REST API, reads enclosure, drive, pool, node and port collections and
returns them as gauges.
"""

__version__ = "0.1.0"

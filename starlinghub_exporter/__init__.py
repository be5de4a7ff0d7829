# ABOUTME: Prometheus exporter for Starling Home Hub contact sensors
# ABOUTME: Exposes the package version reported by --version and build info
__version__ = "0.1.0"

"""
Version information for FastAPI HTTP Metrics.
"""

# Current package version
__version__ = "0.1.0"

# Wire format versions served by the exporter
TEXT_FORMAT_VERSION = "0.0.4"
JSON_FORMAT_VERSION = "0.0.2"

"""Version information for the apisign Python SDK"""

__version__ = "0.1.0"

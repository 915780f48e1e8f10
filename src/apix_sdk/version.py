"""Version information for API-X Python SDK"""

__version__ = "0.1.0"

"""
Configuration module.

BaseAppSettings carries the settings every service needs (MongoDB, JWT
verification, server and CORS). Applications subclass it with their own
fields, e.g. emotiva.config.Settings adds the timezone and paywall options.
"""

from common.config.base_settings import BaseAppSettings

__all__ = ["BaseAppSettings"]

"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for SLA accounting:
- Config: YAML loading and file watching for SLA configuration
"""

from helpdesk_sla.sla.infrastructure.config_manager import (
    SLAConfigManager,
    StaticConfigProvider,
    parse_sla_config,
)

__all__ = [
    "SLAConfigManager",
    "StaticConfigProvider",
    "parse_sla_config",
]

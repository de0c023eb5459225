"""Helpdesk SLA: business-time SLA accounting for helpdesk tickets."""

__version__ = "1.0.0"

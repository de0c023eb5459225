"""
SLA Module
==========

Bounded context for business-time SLA accounting.

Responsibilities:
- Build status periods from a ticket's status history
- Intersect periods with the business calendar (weekdays, hours, holidays, time zone)
- Exclude time spent in paused statuses
- Evaluate response and resolution SLAs against per-priority targets
- Average first-response and resolution times for the dashboard
- Reload per-company calendars and targets from YAML
"""

__version__ = "1.0.0"

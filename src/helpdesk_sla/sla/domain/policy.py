"""
SLA Clock Policy
================

Which statuses pause the SLA clock and which end it.

This is the one place business policy about statuses lives. Every
``TicketStatus`` must appear in ``SLA_CLOCK_BY_STATUS``; the check at the
bottom of the module fails the import when a status is added without a
decision.
"""

from typing import Dict, FrozenSet

from helpdesk_sla.config import SLAClock, TicketStatus


SLA_CLOCK_BY_STATUS: Dict[TicketStatus, SLAClock] = {
    TicketStatus.NEW: SLAClock.RUNNING,
    TicketStatus.ONGOING: SLAClock.RUNNING,
    TicketStatus.SUSPENDED: SLAClock.PAUSED,
    TicketStatus.WAITING_CUSTOMER: SLAClock.PAUSED,
    TicketStatus.ESCALATED: SLAClock.RUNNING,
    TicketStatus.IN_ANALYSIS: SLAClock.RUNNING,
    TicketStatus.PENDING_DEPLOYMENT: SLAClock.PAUSED,
    TicketStatus.REOPENED: SLAClock.RUNNING,
    TicketStatus.RESOLVED: SLAClock.RUNNING,
    TicketStatus.CLOSED: SLAClock.RUNNING,
}

# Statuses that end the SLA clock
SLA_FINISHED_STATUSES: FrozenSet[TicketStatus] = frozenset({
    TicketStatus.RESOLVED,
    TicketStatus.CLOSED,
})


def sla_clock(status: TicketStatus) -> SLAClock:
    return SLA_CLOCK_BY_STATUS[TicketStatus(status)]


def is_paused(status: TicketStatus) -> bool:
    """Check whether the SLA clock stands still while in ``status``."""
    return sla_clock(status) is SLAClock.PAUSED


def is_finished(status: TicketStatus) -> bool:
    return TicketStatus(status) in SLA_FINISHED_STATUSES


_missing = set(TicketStatus) - set(SLA_CLOCK_BY_STATUS)
if _missing:
    raise RuntimeError(
        "SLA clock policy has no decision for: "
        + ", ".join(sorted(status.value for status in _missing))
    )

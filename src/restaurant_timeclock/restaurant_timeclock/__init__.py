"""Restaurant Timeclock package.

Organized by feature modules (schedules, timeclock, approvals, reconciliation, ...)
with a thin Flask controller layer over service/repository layers.
"""

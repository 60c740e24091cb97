"""Scheduler module for the Linkly application.

This module provides scheduled maintenance jobs using APScheduler.
"""

from linkly.scheduler.scheduler import SchedulerService, scheduler_service

__all__ = ["SchedulerService", "scheduler_service"]

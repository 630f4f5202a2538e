"""
Scheduler package for the daily catalog sync.

This package contains:
- The APScheduler-based sync scheduler
- Scheduler configuration and run records
"""

__version__ = "1.0.0"

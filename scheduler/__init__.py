"""
Scheduler package for schedule change detection.

This package contains:
- Diff engine comparing two schedule snapshots
- Change report assembly
- Alerting and webhook delivery
- Interval polling service
"""

__version__ = "1.0.0"

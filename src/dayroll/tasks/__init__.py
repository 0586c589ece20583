"""
Task subsystem.

Components:
- task_models.py: data structures (Task)
- task_store.py: key-value backed task collection + profile/date queries
- rollover.py: once-per-day carry-over of unfinished tasks
- rollover_scheduler.py: polling loop + background thread that drives the rollover
"""

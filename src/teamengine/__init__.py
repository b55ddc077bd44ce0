"""Team coordination engine: ranked reviewer, assignee, mediator and mentor decisions."""

__version__ = "0.1.0"

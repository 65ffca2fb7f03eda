from . import activities, agents, approvals, deliverables, tasks

__all__ = ["activities", "agents", "approvals", "deliverables", "tasks"]

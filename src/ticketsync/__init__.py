"""
ticketsync - Keep a local tasks.json in sync with a ticketing system.

Every task becomes a story-level ticket and every subtask a child ticket in
Jira, GitHub Issues or Azure DevOps. Links are stored back on the tasks, and
reference ids embedded in ticket titles let a lost link be recovered.

Architecture:
- core: domain entities, ports, result type and exceptions
- adapters: ticketing providers, the JSON task store and configuration
- application: the sync service and task lifecycle operations
- cli: command line interface
"""

__version__ = "0.1.0"

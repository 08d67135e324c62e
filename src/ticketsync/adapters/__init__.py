"""
Adapters - Concrete implementations of the core ports.

- jira, github, azure_devops: TicketingProviderPort implementations
- storage: TaskStorePort implementation (tasks.json)
- config: ConfigProviderPort implementations
"""

"""Dependency-aware teardown of a project.

Classes:
    Orchestrator: Drains registered resource types in dependency order
    Registry: Collection of registered resource types
    DependencyResolver: Type-level dependency graph and deletion tiers
    AuditStorage: Audit log storage and retrieval
"""

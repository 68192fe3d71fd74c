"""Resource types that the orchestrator can drain.

Modules:
    base: ResourceType contract and the per-instance deletion state machine
    cache: Thread-safe instance cache
    compute: Built-in Compute Engine resource types
"""

"""Google Compute Engine provider layer.

Modules:
    client: Credential loading and client construction
    compute: ComputeResourceType, the Compute Engine provider calls
    locations: Region and zone discovery
"""

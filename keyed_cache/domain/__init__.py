"""
Domain layer for the keyed async cache.

Holds the data model (entries, statistics), the hook protocols callers
implement, and the exception hierarchy. Nothing here touches the event loop.
"""

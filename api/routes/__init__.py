"""Route handlers following Single Responsibility Principle

Each router module handles a single resource/concept:
- data: generic document CRUD, indexes and queries
- registry: application registry proxy
- health: health/monitoring endpoints
"""

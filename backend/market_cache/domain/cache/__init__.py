"""
Cache Domain Module

Value objects, entities and the store interface for resource caching.
"""

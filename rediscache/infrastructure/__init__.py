"""
Infrastructure Module

External collaborators: the Redis store and the cache patterns built on it.
"""

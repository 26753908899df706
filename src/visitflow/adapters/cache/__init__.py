"""
Caching adapters.
"""

"""
Queue input adapters.
"""

"""
Adapters implementing application ports.
"""

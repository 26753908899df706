"""
Ports implemented by adapters.
"""

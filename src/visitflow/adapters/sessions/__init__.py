"""
Session registry adapters.
"""

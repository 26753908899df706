"""
Core infrastructure: configuration, logging and base exceptions.
"""

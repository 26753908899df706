"""
Domain enums package.
"""

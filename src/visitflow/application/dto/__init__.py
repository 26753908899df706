"""
Application DTOs.
"""

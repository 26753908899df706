"""
Notification channel adapters.
"""

"""
Pure domain services for the start-visit workflow.
"""

"""
Use cases for the start-visit workflow.
"""

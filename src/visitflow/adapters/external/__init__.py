"""
Remote service adapters (OpenMRS REST API).
"""

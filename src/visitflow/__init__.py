"""
visitflow: visit registration workflow service

Collects visit metadata for a patient, validates it, starts the visit on an
OpenMRS server and optionally admits the new visit to a service queue.
"""

__version__ = "0.1.0"
__author__ = "visitflow Team"
__description__ = "Visit registration workflow for OpenMRS-backed clinics"

"""
PatientPathway AI backend.

Symptom-quiz lead capture, doctor notifications and dashboard APIs.
"""

__version__ = "1.0.0"

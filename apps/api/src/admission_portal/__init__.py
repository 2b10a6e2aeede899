"""
Admission Portal API

University admission portal backend: applicants fill a multi-section form,
upload supporting documents and submit for review; admins review, filter,
approve or reject applications and verify documents.
"""

__version__ = "1.0.0"

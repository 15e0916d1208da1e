"""Database models for the Dynamic Forms API"""

from dynamic_forms.models.form_submission import FormSubmission, SubmissionSource

__all__ = [
    "FormSubmission",
    "SubmissionSource",
]

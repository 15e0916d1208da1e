"""Submission statistics endpoint"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from dynamic_forms.models.database import get_db
from dynamic_forms.services.form_submission_service import FormSubmissionService

router = APIRouter(tags=["Analytics"])


@router.get("/analytics")
def get_analytics(db: Session = Depends(get_db)):
    """Totals by source, user type distribution and the five latest submissions"""
    return {"success": True, "data": FormSubmissionService(db).get_analytics()}

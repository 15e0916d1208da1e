"""Form submission endpoints

The session blocks, so every handler is a plain ``def`` run in the threadpool.
"""

import math
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlmodel import Session

from dynamic_forms.exceptions import BadRequestError, SubmissionNotFoundError
from dynamic_forms.models.database import get_db
from dynamic_forms.models.form_submission import SubmissionSource
from dynamic_forms.services.form_submission_service import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    FormSubmissionService,
)


router = APIRouter(prefix="/forms", tags=["Forms"])


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    # Front-ends send empty filters as "?source=&userType="
    if not value:
        return None
    return value


def _parse_source(value: Optional[str]) -> Optional[SubmissionSource]:
    value = _blank_to_none(value)
    if value is None:
        return None
    try:
        return SubmissionSource(value)
    except ValueError as e:
        allowed = ", ".join(source.value for source in SubmissionSource)
        raise BadRequestError(
            f"Invalid source '{value}', expected one of: {allowed}"
        ) from e


def _is_truthy(value: Any) -> bool:
    """Truthiness as JSON clients mean it: empty lists and objects count as set"""
    if value is None or value is False:
        return False
    if isinstance(value, (str, int, float)):
        return bool(value)
    return True


def _get_or_404(service: FormSubmissionService, submission_id: Optional[str]):
    submission = service.get_submission_by_id(submission_id)
    if not submission:
        raise SubmissionNotFoundError()
    return submission


def _require_id(submission_id: Optional[str]) -> str:
    if not submission_id:
        raise BadRequestError("Form ID required")
    return submission_id


def _import_rows(service: FormSubmissionService, rows: Any) -> Dict[str, Any]:
    submissions = service.bulk_create_from_csv(rows)
    return {
        "success": True,
        "message": f"{len(submissions)} records imported successfully!",
        "data": [submission.to_document() for submission in submissions],
    }


@router.get("")
def list_forms(
    id: Optional[str] = Query(None, description="Return this submission only"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    source: Optional[str] = Query(None, description="form or csv"),
    user_type: Optional[str] = Query(None, alias="userType"),
    db: Session = Depends(get_db),
):
    """List submissions newest first, or fetch one when ``id`` is given"""
    service = FormSubmissionService(db)

    if _blank_to_none(id):
        return {"success": True, "data": _get_or_404(service, id).to_document()}

    submissions, total = service.list_submissions(
        source=_parse_source(source),
        user_type=_blank_to_none(user_type),
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": [submission.to_document() for submission in submissions],
        "pagination": {
            "current": page,
            "pages": math.ceil(total / limit),
            "total": total,
        },
    }


@router.post("", status_code=201)
def create_form(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    """Create a submission, or import rows when the body carries ``csvData``"""
    service = FormSubmissionService(db)

    csv_data = payload.get("csvData")
    if _is_truthy(csv_data):
        return _import_rows(service, csv_data)

    submission = service.create_submission(payload)
    return {
        "success": True,
        "message": "Form submitted successfully!",
        "data": submission.to_document(),
    }


@router.post("/csv", status_code=201)
def import_csv(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    """Bulk import CSV rows sent as ``{"csvData": [row, ...]}``"""
    rows = payload.get("csvData")
    if not isinstance(rows, list):
        raise BadRequestError("Invalid CSV data format")

    return _import_rows(FormSubmissionService(db), rows)


@router.get("/search/{query}")
def search_forms(query: str, db: Session = Depends(get_db)):
    """Search name, email, company, business name and school"""
    submissions = FormSubmissionService(db).search_submissions(query)
    return {
        "success": True,
        "data": [submission.to_document() for submission in submissions],
        "count": len(submissions),
    }


@router.get("/{submission_id}")
def get_form(submission_id: str, db: Session = Depends(get_db)):
    submission = _get_or_404(FormSubmissionService(db), submission_id)
    return {"success": True, "data": submission.to_document()}


def _update(db: Session, submission_id: Optional[str], payload: Dict[str, Any]):
    service = FormSubmissionService(db)
    submission = service.update_submission(_require_id(submission_id), payload)
    if not submission:
        raise SubmissionNotFoundError()
    return {
        "success": True,
        "message": "Form updated successfully!",
        "data": submission.to_document(),
    }


def _delete(db: Session, submission_id: Optional[str]):
    document = FormSubmissionService(db).delete_submission(_require_id(submission_id))
    if not document:
        raise SubmissionNotFoundError()
    return {
        "success": True,
        "message": "Form deleted successfully!",
        "data": document,
    }


@router.put("/{submission_id}")
def update_form(
    submission_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    return _update(db, submission_id, payload)


@router.put("")
def update_form_by_query(
    id: Optional[str] = Query(None),
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    """Query-string variant used by the serverless deployment (``?id=``)"""
    return _update(db, id, payload)


@router.delete("/{submission_id}")
def delete_form(submission_id: str, db: Session = Depends(get_db)):
    return _delete(db, submission_id)


@router.delete("")
def delete_form_by_query(
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Query-string variant used by the serverless deployment (``?id=``)"""
    return _delete(db, id)

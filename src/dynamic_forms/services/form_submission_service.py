"""FormSubmission Service - Handles form submission database operations"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, or_, select

from dynamic_forms.exceptions import BadRequestError
from dynamic_forms.models.form_submission import (
    KNOWN_FIELDS,
    RESERVED_FIELDS,
    FormSubmission,
    SubmissionFields,
    SubmissionSource,
    utc_now,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 1000
RECENT_SUBMISSIONS_LIMIT = 5

# Columns matched by free-text search
SEARCH_COLUMNS = ("name", "email", "company", "business_name", "school")

# Keys the service sets itself when creating a submission
ASSIGNED_ON_CREATE = frozenset({"source", "csvData"})


def parse_submission_id(value: Any) -> Optional[uuid.UUID]:
    """Parse an identifier, returning None when it is absent or malformed"""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)


def _parse_fields(
    data: Any, context: str = "Submission", ignored: frozenset = frozenset()
) -> SubmissionFields:
    if not isinstance(data, dict):
        raise BadRequestError(f"{context} must be a JSON object")

    payload = {
        key: value
        for key, value in data.items()
        if key not in RESERVED_FIELDS and key not in ignored
    }
    try:
        return SubmissionFields.model_validate(payload)
    except ValidationError as e:
        raise BadRequestError(
            f"Invalid {context.lower()}: {_describe_validation_error(e)}"
        ) from e


def _apply_known_fields(submission: FormSubmission, fields: SubmissionFields) -> None:
    for attr in KNOWN_FIELDS.values():
        if attr in fields.model_fields_set:
            setattr(submission, attr, getattr(fields, attr))


def _extra_fields(fields: SubmissionFields) -> Optional[dict]:
    return dict(fields.model_extra) if fields.model_extra else None


class FormSubmissionService:
    """Service for handling form submission operations"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def create_submission(self, data: Dict[str, Any]) -> FormSubmission:
        """
        Store a manually submitted form.

        Server-managed keys in the payload (id, timestamps) are ignored and
        the source is always "form".

        Args:
            data: Submission payload using the wire (camelCase) field names

        Returns:
            FormSubmission: The stored submission

        Raises:
            BadRequestError: If a declared field has the wrong type
        """
        fields = _parse_fields(data, ignored=ASSIGNED_ON_CREATE)

        submission = FormSubmission(source=SubmissionSource.FORM)
        _apply_known_fields(submission, fields)
        submission.extra_fields = _extra_fields(fields)

        try:
            self.db.add(submission)
            self.db.commit()
            self.db.refresh(submission)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating form submission: {e}")
            raise

        logger.info(f"Created form submission {submission.id}")
        return submission

    def bulk_create_from_csv(self, rows: Any) -> List[FormSubmission]:
        """
        Store one submission per CSV row in a single transaction.

        Every row gets source "csv", keeps the untouched row in csv_data and
        shares one submitted_at timestamp. Either all rows are stored or none.

        Args:
            rows: List of row objects (column name -> cell value)

        Returns:
            The stored submissions, in row order

        Raises:
            BadRequestError: If rows is not a list or a row is not an object
        """
        if not isinstance(rows, list):
            raise BadRequestError("Invalid CSV data format")

        now = utc_now()
        submissions = []
        for index, row in enumerate(rows):
            fields = _parse_fields(
                row, context=f"CSV row {index}", ignored=ASSIGNED_ON_CREATE
            )
            submission = FormSubmission(
                source=SubmissionSource.CSV,
                csv_data=dict(row),
                submitted_at=now,
                created_at=now,
                updated_at=now,
            )
            _apply_known_fields(submission, fields)
            submission.extra_fields = _extra_fields(fields)
            submissions.append(submission)

        try:
            self.db.add_all(submissions)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error importing {len(submissions)} CSV rows: {e}")
            raise

        for submission in submissions:
            self.db.refresh(submission)

        logger.info(f"Imported {len(submissions)} submissions from CSV")
        return submissions

    def get_submission_by_id(self, submission_id: Any) -> Optional[FormSubmission]:
        """Get a submission by ID; malformed IDs are treated as not found"""
        parsed_id = parse_submission_id(submission_id)
        if parsed_id is None:
            return None
        stmt = select(FormSubmission).where(FormSubmission.id == parsed_id)
        return self.db.exec(stmt).first()

    def _filter(self, stmt, source: Optional[SubmissionSource], user_type: Optional[str]):
        if source is not None:
            stmt = stmt.where(FormSubmission.source == SubmissionSource(source))
        if user_type is not None:
            stmt = stmt.where(FormSubmission.user_type == user_type)
        return stmt

    def _newest_first(self, stmt):
        return stmt.order_by(
            FormSubmission.submitted_at.desc(), FormSubmission.row_id.asc()
        )

    def list_submissions(
        self,
        source: Optional[SubmissionSource] = None,
        user_type: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[FormSubmission], int]:
        """
        Get one page of submissions, newest first.

        Args:
            source: Only submissions from this source
            user_type: Only submissions with this user type
            page: 1-based page number
            limit: Page size, at most MAX_PAGE_SIZE

        Returns:
            Tuple of (submissions on the page, total matching the filter).
            Pages past the end are empty.
        """
        if page < 1 or limit < 1:
            raise BadRequestError("page and limit must be positive integers")
        if limit > MAX_PAGE_SIZE:
            raise BadRequestError(f"limit must not exceed {MAX_PAGE_SIZE}")

        total = self.count_submissions(source=source, user_type=user_type)

        # Never send an offset past the last row; it may not fit in a BIGINT
        offset = (page - 1) * limit
        if offset >= total:
            return [], total

        stmt = self._newest_first(self._filter(select(FormSubmission), source, user_type))
        stmt = stmt.offset(offset).limit(limit)
        return list(self.db.exec(stmt).all()), total

    def count_submissions(
        self,
        source: Optional[SubmissionSource] = None,
        user_type: Optional[str] = None,
    ) -> int:
        """Count submissions matching the filter"""
        stmt = select(func.count()).select_from(FormSubmission)
        stmt = self._filter(stmt, source, user_type)
        return self.db.exec(stmt).one()

    def aggregate_by_user_type(self) -> List[Dict[str, Any]]:
        """Submission counts per user type, largest first; missing types are skipped"""
        count = func.count(FormSubmission.row_id).label("submission_count")
        stmt = (
            select(FormSubmission.user_type, count)
            .where(FormSubmission.user_type.is_not(None))
            .group_by(FormSubmission.user_type)
            .order_by(count.desc(), FormSubmission.user_type.asc())
        )
        return [
            {"userType": user_type, "count": total}
            for user_type, total in self.db.exec(stmt).all()
        ]

    def recent_submissions(
        self, limit: int = RECENT_SUBMISSIONS_LIMIT
    ) -> List[FormSubmission]:
        """Most recent submissions regardless of source"""
        stmt = self._newest_first(select(FormSubmission)).limit(limit)
        return list(self.db.exec(stmt).all())

    def search_submissions(self, query: str) -> List[FormSubmission]:
        """
        Case-insensitive substring search over name, email, company,
        business name and school. The query is matched literally.
        """
        conditions = [
            getattr(FormSubmission, column).icontains(query, autoescape=True)
            for column in SEARCH_COLUMNS
        ]
        stmt = self._newest_first(select(FormSubmission).where(or_(*conditions)))
        return list(self.db.exec(stmt).all())

    def get_analytics(self) -> Dict[str, Any]:
        """Totals by source, user type distribution and the latest submissions"""
        form_count = self.count_submissions(source=SubmissionSource.FORM)
        csv_count = self.count_submissions(source=SubmissionSource.CSV)
        return {
            "totalSubmissions": form_count + csv_count,
            "submissionsBySource": {"form": form_count, "csv": csv_count},
            "userTypeDistribution": self.aggregate_by_user_type(),
            "recentSubmissions": [
                submission.to_summary() for submission in self.recent_submissions()
            ],
        }

    def update_submission(
        self, submission_id: Any, data: Dict[str, Any]
    ) -> Optional[FormSubmission]:
        """
        Merge the supplied fields into an existing submission.

        Only keys present in the payload change. Unknown keys are merged into
        the extra fields; id and timestamps cannot be changed.

        Returns:
            The updated submission, or None if it does not exist

        Raises:
            BadRequestError: If a declared field has the wrong type
        """
        submission = self.get_submission_by_id(submission_id)
        if not submission:
            return None

        fields = _parse_fields(data)
        if "source" in fields.model_fields_set:
            if fields.source is None:
                raise BadRequestError("Invalid submission: source cannot be null")
            submission.source = fields.source
        if "csv_data" in fields.model_fields_set:
            submission.csv_data = fields.csv_data

        _apply_known_fields(submission, fields)
        if fields.model_extra:
            # Reassign so the JSON column is flagged as modified
            submission.extra_fields = {
                **(submission.extra_fields or {}),
                **fields.model_extra,
            }
        submission.updated_at = utc_now()

        try:
            self.db.add(submission)
            self.db.commit()
            self.db.refresh(submission)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating form submission {submission_id}: {e}")
            raise

        logger.info(f"Updated form submission {submission.id}")
        return submission

    def delete_submission(self, submission_id: Any) -> Optional[Dict[str, Any]]:
        """
        Permanently remove a submission.

        Returns:
            The removed submission rendered as a document, or None if it does
            not exist
        """
        submission = self.get_submission_by_id(submission_id)
        if not submission:
            return None

        document = submission.to_document()
        try:
            self.db.delete(submission)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting form submission {submission_id}: {e}")
            raise

        logger.info(f"Deleted form submission {document['id']}")
        return document

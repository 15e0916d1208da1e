"""SQLModel FormSubmission model"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import JSON, Column, DateTime
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class SubmissionSource(str, enum.Enum):
    FORM = "form"
    CSV = "csv"


# Wire name -> column attribute for the declared submission fields
KNOWN_FIELDS = {
    "name": "name",
    "email": "email",
    "userType": "user_type",
    "school": "school",
    "grade": "grade",
    "major": "major",
    "company": "company",
    "position": "position",
    "experience": "experience",
    "skills": "skills",
    "businessName": "business_name",
    "industry": "industry",
    "employees": "employees",
    "revenue": "revenue",
    "interests": "interests",
    "newsletter": "newsletter",
}

# Server-managed keys; ignored when they appear in a request body
RESERVED_FIELDS = {"id", "_id", "__v", "submittedAt", "createdAt", "updatedAt"}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class FormSubmission(SQLModel, table=True):
    """A single form entry, either typed into the web form or imported from CSV"""

    __tablename__ = "form_submissions"

    # Internal sequence; breaks submitted_at ties by insertion order
    row_id: Optional[int] = Field(default=None, primary_key=True)
    id: uuid.UUID = Field(default_factory=uuid.uuid4, unique=True, index=True)

    # Personal information
    name: Optional[str] = None
    email: Optional[str] = None
    user_type: Optional[str] = Field(default=None, index=True)

    # Student fields
    school: Optional[str] = None
    grade: Optional[str] = None
    major: Optional[str] = None

    # Professional fields
    company: Optional[str] = None
    position: Optional[str] = None
    experience: Optional[str] = None
    skills: Optional[str] = None

    # Business fields
    business_name: Optional[str] = None
    industry: Optional[str] = None
    employees: Optional[str] = None
    revenue: Optional[str] = None

    interests: Optional[str] = None
    newsletter: Optional[bool] = None

    submitted_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
    source: SubmissionSource = Field(
        default=SubmissionSource.FORM,
        sa_column=Column(
            SAEnum(
                SubmissionSource,
                name="submission_source",
                native_enum=True,
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
            index=True,
            server_default=SubmissionSource.FORM.value,
        ),
    )
    # Original CSV row, kept verbatim for imported submissions
    csv_data: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    # Client-supplied keys outside the declared fields
    extra_fields: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: Optional[datetime] = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True))
    )
    updated_at: Optional[datetime] = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True))
    )

    def to_document(self) -> Dict[str, Any]:
        """Render the submission as the JSON document returned by the API"""
        doc: Dict[str, Any] = {"id": str(self.id)}
        for key, value in (self.extra_fields or {}).items():
            if key not in KNOWN_FIELDS:
                doc[key] = value
        for key, attr in KNOWN_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                doc[key] = value

        doc["submittedAt"] = _isoformat(self.submitted_at)
        doc["source"] = SubmissionSource(self.source).value
        if self.csv_data is not None:
            doc["csvData"] = self.csv_data
        doc["createdAt"] = _isoformat(self.created_at)
        doc["updatedAt"] = _isoformat(self.updated_at)
        return doc

    def to_summary(self) -> Dict[str, Any]:
        """Projection used by the analytics recent-submissions list"""
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "userType": self.user_type,
            "submittedAt": _isoformat(self.submitted_at),
            "source": SubmissionSource(self.source).value,
        }


class SubmissionFields(BaseModel):
    """Declared (non-strict) shape of a submission payload.

    Only the camelCase wire names fill declared fields; any other key,
    snake_case spellings included, is kept in ``model_extra``. Numbers sent
    for string fields are coerced to strings the same way CSV cells are.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    name: Optional[str] = None
    email: Optional[str] = None
    user_type: Optional[str] = None
    school: Optional[str] = None
    grade: Optional[str] = None
    major: Optional[str] = None
    company: Optional[str] = None
    position: Optional[str] = None
    experience: Optional[str] = None
    skills: Optional[str] = None
    business_name: Optional[str] = None
    industry: Optional[str] = None
    employees: Optional[str] = None
    revenue: Optional[str] = None
    interests: Optional[str] = None
    newsletter: Optional[bool] = None
    source: Optional[SubmissionSource] = None
    csv_data: Optional[Dict[str, Any]] = None

    @field_validator("newsletter", mode="before")
    @classmethod
    def blank_newsletter_is_unset(cls, value):
        # Empty CSV cells arrive as ""
        if isinstance(value, str) and not value.strip():
            return None
        return value

import json
import uuid
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError as PydanticValidationError

from app.errors import ValidationError
from app.models.enums import ItemCategory


class ValidatedCreateItem(BaseModel):
    title: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=10, max_length=1000)
    category: ItemCategory
    date_found: datetime
    city: str = Field(min_length=2, max_length=60)
    area: str = Field(min_length=2, max_length=100)
    specific_location: str = Field(min_length=2, max_length=200)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    organization_id: Optional[uuid.UUID] = None
    contact_method: Optional[str] = Field(default=None, max_length=100)


class SecurityAnswers(BaseModel):
    model_config = ConfigDict(extra="forbid")

    purchase_date: Optional[str] = Field(default=None, max_length=100)
    purchase_location: Optional[str] = Field(default=None, max_length=200)
    specific_details: Optional[str] = Field(default=None, max_length=1000)


class VerificationProof(BaseModel):
    identification_marks: Optional[str] = Field(default=None, max_length=1000)
    security_answers: Optional[SecurityAnswers] = None
    claimant_phone: Optional[str] = Field(default=None, max_length=20)
    purchase_proof_url: Optional[str] = None
    photo_with_item_urls: List[str] = Field(default_factory=list)
    additional_proof_urls: List[str] = Field(default_factory=list)


class ValidatedCreateOrganization(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    type: str = Field(min_length=2, max_length=50)
    address: str = Field(min_length=3, max_length=300)
    city: str = Field(min_length=2, max_length=60)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    contact_email: EmailStr
    contact_phone: str = Field(min_length=6, max_length=20)
    logo_url: Optional[str] = None
    radius_meters: Optional[int] = Field(default=None, gt=0)
    require_location_verification: bool = False


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _detail(e: PydanticValidationError) -> str:
    messages = []
    for error in e.errors():
        field = ".".join(str(part) for part in error["loc"])
        messages.append(f"{field}: {error['msg']}")
    return "; ".join(messages)


def validate_create_item_form(**fields) -> ValidatedCreateItem:
    if isinstance(fields.get("date_found"), str):
        try:
            fields["date_found"] = datetime.fromisoformat(fields["date_found"].replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError("Date not parseable")

    try:
        return ValidatedCreateItem(**{k: _clean(v) for k, v in fields.items()})
    except PydanticValidationError as e:
        raise ValidationError(_detail(e))


def parse_security_answers(raw: Optional[str]) -> Optional[SecurityAnswers]:
    """Security answers arrive as a JSON object inside a multipart form."""
    if not raw:
        return None

    try:
        return SecurityAnswers.model_validate(json.loads(raw))
    except json.JSONDecodeError:
        raise ValidationError("security_answers must be a JSON object")
    except PydanticValidationError as e:
        raise ValidationError(_detail(e))


def validate_verification_proof(**fields) -> VerificationProof:
    try:
        return VerificationProof(**{k: _clean(v) for k, v in fields.items()})
    except PydanticValidationError as e:
        raise ValidationError(_detail(e))


def validate_create_organization_form(**fields) -> ValidatedCreateOrganization:
    try:
        return ValidatedCreateOrganization(**{k: _clean(v) for k, v in fields.items()})
    except PydanticValidationError as e:
        raise ValidationError(_detail(e))

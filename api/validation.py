from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from services.validation import get_field_error, validate_user_type_fields

router = APIRouter(prefix="/api/validation", tags=["validation"])


class FieldsRequest(BaseModel):
    fields: dict[str, str]


class IdentityRequest(BaseModel):
    user_type: str
    pan_number: Optional[str] = None
    aadhar_number: Optional[str] = None
    gst_number: Optional[str] = None
    passport_number: Optional[str] = None


@router.post("/fields", response_model=dict)
async def check_fields(body: FieldsRequest):
    """Inline messages for form fields; valid fields are omitted."""
    errors = {}
    for field, value in body.fields.items():
        message = get_field_error(field, value)
        if message:
            errors[field] = message
    return {"valid": not errors, "errors": errors}


@router.post("/identity", response_model=dict)
async def check_identity(body: IdentityRequest):
    errors = validate_user_type_fields(body.user_type, body.model_dump(exclude={"user_type"}))
    return {"valid": not errors, "errors": errors}

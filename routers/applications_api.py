import logging
import math
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from pydantic import BaseModel

import email_service
import uploads
from application_service import APPLICATION_STATUSES, application_service, normalize_email
from auth import require_admin
from email_log_service import email_log_service
from errors import BadRequestError, ForbiddenError, NotFoundError, ValidationError, format_response
from message_service import is_valid_email
from property_service import property_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/application", tags=["Applications"])

MAX_OTHER_DOCUMENTS = 5


class LookupRequest(BaseModel):
    email: Optional[str] = None


class ApplicationStatusUpdate(BaseModel):
    status: Optional[str] = None
    admin_notes: Optional[str] = None


def _notify_submission(application: dict):
    prop = property_service.get_by_id(application.get("property_id"))
    if not prop:
        logger.warning("⚠️ Property not found for email notification, using fallback data")
        prop = {"id": application.get("property_id"), "title": "Unknown Property", "location": "Unknown Location"}

    email_service.send_owner_notification(application, prop)
    email_service.send_applicant_confirmation(application, prop)


def _notify_status_change(application: dict, status: str, notes: Optional[str]):
    prop = property_service.get_by_id(application.get("property_id"))
    email_service.send_status_update(application, status, notes, prop)


# ---------------------------
# Public
# ---------------------------
@router.post("", status_code=201)
async def submit_application(
    background_tasks: BackgroundTasks,
    property_id: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    income: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    state: Optional[str] = Form(None),
    zip_code: Optional[str] = Form(None, alias="zip"),
    occupants: Optional[str] = Form(None),
    employment: Optional[str] = Form(None),
    message: Optional[str] = Form(None),
    doc_id: Optional[UploadFile] = File(None),
    doc_income: Optional[UploadFile] = File(None),
    doc_other: Optional[List[UploadFile]] = File(None),
):
    required = [property_id, name, email, phone, income, address, city, state, zip_code, occupants, employment]
    if not all(required):
        raise ValidationError("Missing required fields")

    if not is_valid_email(email):
        raise ValidationError("Invalid email format")

    try:
        parsed_property_id = int(property_id)
        parsed_income = float(income)
        parsed_occupants = int(occupants)
    except ValueError:
        raise ValidationError("Invalid numeric field")

    if not math.isfinite(parsed_income) or parsed_income <= 0:
        raise ValidationError("Valid income amount is required")
    if parsed_occupants < 1:
        raise ValidationError("Valid number of occupants is required")

    if doc_other and len(doc_other) > MAX_OTHER_DOCUMENTS:
        raise ValidationError(f"At most {MAX_OTHER_DOCUMENTS} additional documents are allowed")

    documents = await uploads.save_documents({
        "doc_id": ("ID", [doc_id]),
        "doc_income": ("Income", [doc_income]),
        "doc_other": ("Other", doc_other or []),
    })

    application = application_service.create({
        "property_id": parsed_property_id,
        "name": name,
        "email": email,
        "phone": phone,
        "income": int(parsed_income) if parsed_income.is_integer() else parsed_income,
        "address": address,
        "city": city,
        "state": state,
        "zip": zip_code,
        "occupants": parsed_occupants,
        "employment": employment,
        "message": message or "",
        "documents": documents,
    })

    background_tasks.add_task(_notify_submission, application)
    return format_response(application, "Application submitted successfully")


@router.post("/lookup")
async def lookup_applications(body: LookupRequest):
    if not body.email:
        raise ValidationError("Email is required")
    if not is_valid_email(body.email):
        raise ValidationError("Invalid email format")

    results = [application_service.lookup_summary(a) for a in application_service.get_by_email(body.email)]
    return format_response(results, f"Found {len(results)} application(s)")


@router.get("/lookup/{application_id}")
async def lookup_application(application_id: int, email: Optional[str] = None):
    if not email:
        raise BadRequestError("Email verification required")

    application = application_service.get_by_id(application_id)
    if not application:
        raise NotFoundError.for_resource("Application")

    if normalize_email(application.get("email")) != normalize_email(email):
        raise ForbiddenError("Email does not match this application")

    prop = property_service.get_by_id(application.get("property_id"))
    history = [
        {k: log.get(k) for k in ("id", "type", "subject", "status", "created_at")}
        for log in email_log_service.get_by_application_id(application_id)
    ]

    return format_response(
        {
            **application,
            "property": application_service.property_details(prop),
            "email_history": history,
        },
        "Application retrieved successfully",
    )


# ---------------------------
# Admin
# ---------------------------
@router.get("", dependencies=[Depends(require_admin)])
async def list_applications(status: Optional[str] = None):
    applications = application_service.get_all(status)
    return format_response(applications, f"Retrieved {len(applications)} applications")


@router.get("/{application_id}", dependencies=[Depends(require_admin)])
async def get_application(application_id: int):
    application = application_service.get_by_id(application_id)
    if not application:
        raise NotFoundError.for_resource("Application")

    return format_response(
        {**application, "meets_income_requirement": application_service.meets_income_requirement(application)},
        "Application retrieved successfully",
    )


@router.patch("/{application_id}/status")
async def update_application_status(
    application_id: int,
    body: ApplicationStatusUpdate,
    background_tasks: BackgroundTasks,
    admin: dict = Depends(require_admin),
):
    if body.status not in APPLICATION_STATUSES:
        raise ValidationError("Invalid status")

    application = application_service.update_status(application_id, body.status, body.admin_notes, admin["id"])
    background_tasks.add_task(_notify_status_change, application, body.status, body.admin_notes)
    return format_response(application, "Application status updated successfully")

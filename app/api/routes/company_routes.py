"""
Company Routes - companies owned by recruiters

POST /company/register      - Register a company (recruiter)
GET  /company/get           - Companies of the current user
GET  /company/get/{id}      - Company by id
PUT  /company/update/{id}   - Update company details / logo (owner only)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.auth import get_current_recruiter, get_current_user
from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.services.mongo_service import CompanyStore, serialize_doc, serialize_docs, to_object_id
from app.utils.file_upload import remove_upload, save_optional_upload
from app.schemas.schemas import ApiResponse, CompanyCreate, CompanyResponse

router = APIRouter(prefix="/company", tags=["Company"])


def get_owned_company(company_id: str, user: dict) -> dict:
    """Load a company the current user owns; 400 / 404 / 403 otherwise."""
    if to_object_id(company_id) is None:
        raise ValidationError("Invalid company id")
    company = CompanyStore().find_by_id(company_id)
    if not company:
        raise NotFoundError("Company not found")
    if str(company["user_id"]) != user["_id"]:
        raise ForbiddenError("You can only manage your own companies")
    return company


@router.post("/register", response_model=ApiResponse[CompanyResponse], status_code=201)
def register_company(data: CompanyCreate, user: dict = Depends(get_current_recruiter)):
    companies = CompanyStore()
    if companies.find_by_name(data.company_name):
        raise ConflictError(
            f"Company with {data.company_name} name already exists! So try with another name"
        )
    company = companies.create(user["_id"], data.model_dump())
    return ApiResponse(
        status_code=201,
        data=CompanyResponse.model_validate(serialize_doc(company)),
        message="Company registered successfully",
    )


@router.get("/get", response_model=ApiResponse[List[CompanyResponse]])
def get_companies(user: dict = Depends(get_current_user)):
    """Empty list when the user has no companies."""
    companies = serialize_docs(CompanyStore().find_by_owner(user["_id"]))
    return ApiResponse(
        status_code=200,
        data=[CompanyResponse.model_validate(c) for c in companies],
        message="Companies fetched successfully",
    )


@router.get("/get/{company_id}", response_model=ApiResponse[CompanyResponse])
def get_company_by_id(company_id: str, user: dict = Depends(get_current_user)):
    if to_object_id(company_id) is None:
        raise ValidationError("Invalid company id")
    company = CompanyStore().find_by_id(company_id)
    if not company:
        raise NotFoundError("Company not found")
    return ApiResponse(
        status_code=200,
        data=CompanyResponse.model_validate(serialize_doc(company)),
        message="Company fetched successfully",
    )


@router.put("/update/{company_id}", response_model=ApiResponse[CompanyResponse])
async def update_company(
    company_id: str,
    company_name: Optional[str] = Form(None, alias="companyName"),
    description: Optional[str] = Form(None),
    website: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    user: dict = Depends(get_current_recruiter),
):
    """Multipart form; only the provided fields change."""
    await run_in_threadpool(get_owned_company, company_id, user)

    fields = {}
    if company_name is not None:
        if not company_name.strip():
            raise ValidationError("Company name must not be blank")
        fields["company_name"] = company_name.strip()
    for name, value in (("description", description), ("website", website), ("location", location)):
        if value is not None:
            fields[name] = value.strip()

    stored = await save_optional_upload(logo, "image", "logos")
    if stored:
        fields["logo"] = stored.url

    if not fields:
        raise ValidationError("No fields to update")

    try:
        company = await run_in_threadpool(CompanyStore().update, company_id, fields)
    except Exception:
        remove_upload(stored)
        raise
    return ApiResponse(
        status_code=200,
        data=CompanyResponse.model_validate(serialize_doc(company)),
        message="Company information updated",
    )

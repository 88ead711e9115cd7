"""
Job Routes - job postings

POST   /job/post                 - Post a job for one of your companies (recruiter)
GET    /job/allJobs?keyword=     - Search jobs by title / description (public)
GET    /job/getJobById/{id}      - Job with its company and applications (public)
GET    /job/getJobByAdmin        - Jobs posted by the current recruiter
PUT    /job/update/{id}          - Update a job (owner only)
DELETE /job/delete/{id}          - Delete a job and its applications (owner only)
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from app.core.auth import get_current_recruiter
from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.services.mongo_service import (
    ApplicationStore, CompanyStore, JobStore, serialize_doc, to_object_id
)
from app.schemas.schemas import ApiResponse, JobCreate, JobResponse, JobUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/job", tags=["Job"])


# ============================================================
# HELPERS
# ============================================================

def with_companies(jobs: List[dict]) -> List[dict]:
    """Replace each job's company id with the company document (id kept if it is gone)."""
    by_id = CompanyStore().find_many([job.get("company") for job in jobs])
    return [{**job, "company": by_id.get(job.get("company"), job.get("company"))} for job in jobs]


def job_response(job: dict) -> JobResponse:
    return JobResponse.model_validate(serialize_doc(job))


def load_job(job_id: str) -> dict:
    if to_object_id(job_id) is None:
        raise ValidationError("Invalid job id")
    job = JobStore().find_by_id(job_id)
    if not job:
        raise NotFoundError("Job not found")
    return job


def load_owned_job(job_id: str, user: dict) -> dict:
    job = load_job(job_id)
    if str(job["created_by"]) != user["_id"]:
        raise ForbiddenError("You can only manage jobs you posted")
    return job


def check_company_owner(company_id: str, user: dict) -> None:
    if to_object_id(company_id) is None:
        raise ValidationError("Invalid company id")
    company = CompanyStore().find_by_id(company_id)
    if not company:
        raise NotFoundError("Company not found")
    if str(company["user_id"]) != user["_id"]:
        raise ForbiddenError("You can only post jobs for your own companies")


# ============================================================
# ROUTES
# ============================================================

@router.post("/post", response_model=ApiResponse[JobResponse], status_code=201)
def post_job(data: JobCreate, user: dict = Depends(get_current_recruiter)):
    check_company_owner(data.company_id, user)

    fields = data.model_dump(exclude={"company_id"})
    fields["company"] = data.company_id
    job = JobStore().create(user["_id"], fields)
    logger.info("Job %s posted by %s", job["_id"], user["_id"])
    return ApiResponse(status_code=201, data=job_response(job), message="New job created successfully")


@router.get("/allJobs", response_model=ApiResponse[List[JobResponse]])
def get_all_jobs(keyword: str = Query("", description="Matches title or description")):
    jobs = with_companies(JobStore().search(keyword))
    return ApiResponse(
        status_code=200, data=[job_response(job) for job in jobs], message="Jobs fetched successfully"
    )


@router.get("/getJobById/{job_id}", response_model=ApiResponse[JobResponse])
def get_job_by_id(job_id: str):
    job = with_companies([load_job(job_id)])[0]
    job["applications"] = ApplicationStore().find_by_job(job["_id"])
    return ApiResponse(status_code=200, data=job_response(job), message="Job fetched successfully")


@router.get("/getJobByAdmin", response_model=ApiResponse[List[JobResponse]])
def get_admin_jobs(user: dict = Depends(get_current_recruiter)):
    jobs = with_companies(JobStore().find_by_creator(user["_id"]))
    return ApiResponse(
        status_code=200, data=[job_response(job) for job in jobs], message="Jobs fetched successfully"
    )


@router.put("/update/{job_id}", response_model=ApiResponse[JobResponse])
def update_job(job_id: str, data: JobUpdate, user: dict = Depends(get_current_recruiter)):
    load_owned_job(job_id, user)

    fields = data.model_dump(exclude_none=True, exclude={"company_id"})
    if data.company_id is not None:
        check_company_owner(data.company_id, user)
        fields["company"] = to_object_id(data.company_id)
    if not fields:
        raise ValidationError("No fields to update")

    job = with_companies([JobStore().update(job_id, fields)])[0]
    return ApiResponse(status_code=200, data=job_response(job), message="Job updated successfully")


@router.delete("/delete/{job_id}", response_model=ApiResponse[dict])
def delete_job(job_id: str, user: dict = Depends(get_current_recruiter)):
    load_owned_job(job_id, user)
    JobStore().delete(job_id)
    removed = ApplicationStore().delete_by_job(job_id)
    logger.info("Job %s deleted with %d applications", job_id, removed)
    return ApiResponse(status_code=200, data={}, message="Job deleted successfully")

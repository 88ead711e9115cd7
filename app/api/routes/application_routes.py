"""
Application Routes - students applying, recruiters reviewing

GET  /application/applyJob/{id}          - Apply to a job (student)
GET  /application/getAppliedJobs         - Current user's applications, with job + company
GET  /application/{id}/getApplicants     - A job with its applications and applicants (job owner)
POST /application/status/{id}/update     - Change an application's status (job owner)
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from app.api.routes.job_routes import job_response, load_job, load_owned_job, with_companies
from app.core.auth import get_current_recruiter, get_current_student, get_current_user
from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.services.mongo_service import (
    ApplicationStore, JobStore, UserStore, public_user, serialize_doc, to_object_id
)
from app.schemas.schemas import (
    ApiResponse, ApplicationResponse, ApplicationStatusUpdate, JobResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/application", tags=["Application"])


@router.get("/applyJob/{job_id}", response_model=ApiResponse[ApplicationResponse], status_code=201)
def apply_job(job_id: str, user: dict = Depends(get_current_student)):
    """One application per job and student; a second attempt is 409."""
    job = load_job(job_id)

    applications = ApplicationStore()
    if applications.find_existing(job["_id"], user["_id"]):
        raise ConflictError("You have already applied for this job")

    application = applications.create(job["_id"], user["_id"])
    JobStore().add_application(job["_id"], application["_id"])
    logger.info("User %s applied to job %s", user["_id"], job["_id"])
    return ApiResponse(
        status_code=201,
        data=ApplicationResponse.model_validate(serialize_doc(application)),
        message="Job applied successfully",
    )


@router.get("/getAppliedJobs", response_model=ApiResponse[List[ApplicationResponse]])
def get_applied_jobs(user: dict = Depends(get_current_user)):
    """Newest first. Applications whose job was removed keep the bare job id."""
    applications = ApplicationStore().find_by_applicant(user["_id"])
    jobs = JobStore().find_many([a["job"] for a in applications])
    embedded = {job["_id"]: job for job in with_companies(list(jobs.values()))}
    result = [
        ApplicationResponse.model_validate(serialize_doc({**a, "job": embedded.get(a["job"], a["job"])}))
        for a in applications
    ]
    return ApiResponse(status_code=200, data=result, message="Applied jobs fetched successfully")


@router.get("/{job_id}/getApplicants", response_model=ApiResponse[JobResponse])
def get_applicants(job_id: str, user: dict = Depends(get_current_recruiter)):
    job = load_owned_job(job_id, user)

    applications = ApplicationStore().find_by_job(job["_id"])
    users = UserStore()
    for application in applications:
        applicant = users.find_by_id(application["applicant"])
        if applicant:
            application["applicant"] = public_user(applicant)

    job["applications"] = applications
    return ApiResponse(status_code=200, data=job_response(job), message="Applicants fetched successfully")


@router.post("/status/{application_id}/update", response_model=ApiResponse[ApplicationResponse])
def update_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    user: dict = Depends(get_current_recruiter),
):
    if to_object_id(application_id) is None:
        raise ValidationError("Invalid application id")

    applications = ApplicationStore()
    application = applications.find_by_id(application_id)
    if not application:
        raise NotFoundError("Application not found")

    job = JobStore().find_by_id(application["job"])
    if not job or str(job["created_by"]) != user["_id"]:
        raise ForbiddenError("You can only update applications to your own jobs")

    updated = applications.update_status(application_id, data.status)
    logger.info("Application %s -> %s", application_id, data.status)
    return ApiResponse(
        status_code=200,
        data=ApplicationResponse.model_validate(serialize_doc(updated)),
        message="Status updated successfully",
    )

"""
Dashboard Routes - statistics for the logged-in user and the whole portal

GET /dashboard/stats         - Application counts by status + profile score
GET /dashboard/trends        - Applications per month, last six months
GET /dashboard/skills        - Skills from the user's profile
GET /dashboard/global-stats  - Portal-wide totals and average profile score
"""

from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import get_current_user
from app.services.dashboard_service import DashboardService, get_dashboard_service
from app.schemas.schemas import (
    ApiResponse, GlobalStatsResponse, SkillLevel, TrendPoint, UserStatsResponse
)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=ApiResponse[UserStatsResponse])
def get_user_stats(
    user: dict = Depends(get_current_user),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    return ApiResponse(
        status_code=200,
        data=UserStatsResponse(**dashboard.user_stats(user)),
        message="User stats fetched successfully",
    )


@router.get("/trends", response_model=ApiResponse[List[TrendPoint]])
def get_application_trends(
    user: dict = Depends(get_current_user),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    trends = [TrendPoint(**point) for point in dashboard.application_trends(user["_id"])]
    return ApiResponse(status_code=200, data=trends, message="Application trends fetched successfully")


@router.get("/skills", response_model=ApiResponse[List[SkillLevel]])
def get_user_skills(
    user: dict = Depends(get_current_user),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    skills = [SkillLevel(**skill) for skill in dashboard.user_skills(user)]
    return ApiResponse(status_code=200, data=skills, message="User skills fetched successfully")


@router.get("/global-stats", response_model=ApiResponse[GlobalStatsResponse])
def get_global_stats(
    user: dict = Depends(get_current_user),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    return ApiResponse(
        status_code=200,
        data=GlobalStatsResponse(**dashboard.global_stats()),
        message="Global stats fetched successfully",
    )

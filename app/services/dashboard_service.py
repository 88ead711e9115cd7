"""
Dashboard Service - counts and aggregates for the statistics pages.

All numbers come straight from MongoDB (count_documents / aggregate);
nothing is cached.
"""

from typing import List, Optional

from app.services.mongo_service import (
    ApplicationStore,
    CompanyStore,
    JobStore,
    UserStore,
    to_object_id,
    utcnow,
)

# Points awarded per completed profile part (sums to 100)
PROFILE_SCORE_WEIGHTS = {
    "bio": 20,
    "skills": 20,
    "resume": 20,
    "avatar": 10,
    "cover_image": 10,
    "phone_number": 10,
    "email": 10,
}

TREND_MONTHS = 6


def profile_score(user: dict) -> int:
    """0-100 completeness score of a user document."""
    profile = user.get("profile") or {}
    score = 0
    for part in ("bio", "skills", "resume", "avatar", "cover_image"):
        if profile.get(part):
            score += PROFILE_SCORE_WEIGHTS[part]
    for field in ("phone_number", "email"):
        if user.get(field):
            score += PROFILE_SCORE_WEIGHTS[field]
    return score


def _months_back(now, months: int):
    """First day of the month `months` months before now."""
    year, month = now.year, now.month - months
    while month <= 0:
        month += 12
        year -= 1
    return now.replace(year=year, month=month, day=1, hour=0, minute=0, second=0, microsecond=0)


class DashboardService:
    """Per-user and global statistics."""

    def __init__(
        self,
        users: Optional[UserStore] = None,
        jobs: Optional[JobStore] = None,
        companies: Optional[CompanyStore] = None,
        applications: Optional[ApplicationStore] = None,
    ):
        self.users = users or UserStore()
        self.jobs = jobs or JobStore()
        self.companies = companies or CompanyStore()
        self.applications = applications or ApplicationStore()

    def user_stats(self, user: dict) -> dict:
        applicant = to_object_id(user["_id"])

        def count(status: Optional[str] = None) -> int:
            query = {"applicant": applicant}
            if status:
                query["status"] = status
            return self.applications.count(query)

        return {
            "total_applied_jobs": count(),
            "total_interviews": count("interview"),
            "total_pending": count("pending"),
            "total_rejected": count("rejected"),
            "total_selected": count("selected"),
            "total_jobs": self.jobs.count(),
            "profile_score": profile_score(user),
        }

    def application_trends(self, user_id: str) -> List[dict]:
        """Applications per month over the last six months, formatted YYYY-MM."""
        since = _months_back(utcnow(), TREND_MONTHS)
        return [
            {"month": f"{row['_id']['year']}-{row['_id']['month']:02d}", "count": row["count"]}
            for row in self.applications.monthly_counts(user_id, since)
        ]

    def user_skills(self, user: dict) -> List[dict]:
        skills = (user.get("profile") or {}).get("skills") or []
        # Fixed level until skills carry their own rating
        return [{"name": skill, "level": 80} for skill in skills]

    def global_stats(self) -> dict:
        scores = [profile_score(doc) for doc in self.users.iter_all({"password": 0, "refresh_token": 0})]
        average = round(sum(scores) / len(scores), 2) if scores else 0
        return {
            "total_jobs": self.jobs.count(),
            "total_users": self.users.count(),
            "total_applications": self.applications.count(),
            "total_companies": self.companies.count(),
            "average_profile_score": average,
        }


def get_dashboard_service() -> DashboardService:
    """Get dashboard service instance."""
    return DashboardService()

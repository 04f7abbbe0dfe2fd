"""
Analytics Service - dashboard statistics.

Everything here is read-only: document counts, ``$group`` pipelines and
"most recent N" listings with their references resolved.
"""

import calendar
from datetime import datetime
from typing import List, Optional

from pymongo.database import Database

from projectify.schemas.schemas import ApplicationStatus, ProjectStatus, UserRole
from projectify.services.mongo_service import ApplicationService, ProjectService, UserService

TRAILING_MONTHS = 6


def months_before(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` calendar months earlier, clamped to the month's length."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class AnalyticsService:
    def __init__(self, db: Database):
        self.users = UserService(db)
        self.projects = ProjectService(db)
        self.applications = ApplicationService(db)

    def dashboard(self, now: Optional[datetime] = None) -> dict:
        """Totals per entity and status, user split by role, and the monthly application histogram."""
        projects, applications, users = self.projects, self.applications, self.users
        return {
            "totalProjects": projects.count(),
            "approvedProjects": projects.count({"status": ProjectStatus.approved.value}),
            "pendingProjects": projects.count({"status": ProjectStatus.pending.value}),
            "rejectedProjects": projects.count({"status": ProjectStatus.rejected.value}),
            "totalApplications": applications.count(),
            "pendingApplications": applications.count({"status": ApplicationStatus.pending.value}),
            "approvedApplications": applications.count({"status": ApplicationStatus.approved.value}),
            "rejectedApplications": applications.count({"status": ApplicationStatus.rejected.value}),
            "totalUsers": users.count(),
            "adminUsers": users.count({"role": UserRole.admin.value}),
            "regularUsers": users.count({"role": UserRole.user.value}),
            "monthlyStats": self.monthly_applications(now),
        }

    def monthly_applications(self, now: Optional[datetime] = None) -> List[dict]:
        """
        Applications per (year, month) over the trailing six months.

        Sorted oldest first; months without applications are left out.
        """
        since = months_before(now or datetime.utcnow(), TRAILING_MONTHS)
        pipeline = [
            {"$match": {"createdAt": {"$gte": since}}},
            {
                "$group": {
                    "_id": {"year": {"$year": "$createdAt"}, "month": {"$month": "$createdAt"}},
                    "applications": {"$sum": 1},
                }
            },
            {"$sort": {"_id.year": 1, "_id.month": 1}},
        ]
        return [
            {
                "month": f"{row['_id']['year']}-{row['_id']['month']:02d}",
                "applications": row["applications"],
            }
            for row in self.applications.collection.aggregate(pipeline)
        ]

    def projects_by_status(self) -> List[dict]:
        return self._count_by_status(self.projects.collection)

    def applications_by_status(self) -> List[dict]:
        return self._count_by_status(self.applications.collection)

    def recent_activity(self, limit: int = 10) -> dict:
        """Newest projects (creator resolved) and applications (applicant and project name resolved)."""
        return {
            "recentProjects": self.projects.find({}, limit=limit),
            "recentApplications": self.applications.find(
                {}, populate_user=True, project_fields=["name"], limit=limit
            ),
        }

    @staticmethod
    def _count_by_status(collection) -> List[dict]:
        pipeline = [
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
            {"$sort": {"_id": 1}},
        ]
        return [{"status": row["_id"], "count": row["count"]} for row in collection.aggregate(pipeline)]

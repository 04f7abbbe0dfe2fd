"""Unit tests for project/application state transitions."""

from datetime import datetime

import pytest
from bson import ObjectId

from projectify.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from projectify.services.mongo_service import ApplicationService, ProjectService, UserService
from projectify.services.notifications import EventType
from projectify.services.workflow import ApplicationWorkflow, ProjectWorkflow

PROJECT = {
    "name": "Site Redesign",
    "description": "Refresh the marketing site",
    "startDate": "2024-01-01",
    "endDate": "2024-03-01",
    "budget": 5000,
}


@pytest.fixture
def projects(db, notifier):
    return ProjectWorkflow(db, notifier)


@pytest.fixture
def applications(db, notifier):
    return ApplicationWorkflow(db, notifier)


@pytest.fixture
def approved_project(projects, admin):
    project = projects.create(admin, PROJECT)
    projects.approve(admin, str(project["_id"]))
    return project


class TestProjectCreation:
    def test_created_pending_with_creator(self, projects, admin):
        project = projects.create(admin, PROJECT)
        assert project["status"] == "pending"
        assert project["startDate"] == datetime(2024, 1, 1)
        assert project["createdBy"]["email"] == admin["email"]

    def test_invalid_project_is_not_persisted(self, projects, admin, db):
        with pytest.raises(ValidationError):
            projects.create(admin, dict(PROJECT, endDate="2023-06-01"))
        with pytest.raises(ValidationError):
            projects.create(admin, dict(PROJECT, budget=-10))
        assert ProjectService(db).count() == 0

    def test_users_cannot_create(self, projects, make_user, db):
        with pytest.raises(AuthorizationError):
            projects.create(make_user(), PROJECT)
        assert ProjectService(db).count() == 0


class TestProjectVisibility:
    def test_user_listing_only_contains_approved(self, projects, admin, make_user):
        pending = projects.create(admin, dict(PROJECT, name="Pending"))
        rejected = projects.create(admin, dict(PROJECT, name="Rejected"))
        approved = projects.create(admin, dict(PROJECT, name="Approved"))
        projects.reject(admin, str(rejected["_id"]))
        projects.approve(admin, str(approved["_id"]))

        user = make_user()
        assert [p["name"] for p in projects.list_visible(user)] == ["Approved"]
        assert [p["name"] for p in projects.list_visible(user, "pending")] == ["Approved"]
        assert len(projects.list_visible(admin)) == 3
        assert [p["_id"] for p in projects.list_visible(admin, "pending")] == [pending["_id"]]

    def test_user_reading_pending_project_is_forbidden(self, projects, admin, make_user):
        project = projects.create(admin, PROJECT)
        with pytest.raises(AuthorizationError):
            projects.get(make_user(), str(project["_id"]))
        assert projects.get(admin, str(project["_id"]))["name"] == "Site Redesign"

    @pytest.mark.parametrize("project_id", [str(ObjectId()), "not-an-id"])
    def test_missing_project_is_not_found(self, projects, make_user, project_id):
        with pytest.raises(NotFoundError):
            projects.get(make_user(), project_id)


class TestProjectTransitions:
    def test_approval_notifies_every_applicant(self, projects, applications, admin, make_user, notifier, approved_project):
        pid = str(approved_project["_id"])
        for i in range(3):
            applications.create(make_user(f"User {i}", f"user{i}@example.com"), {"projectId": pid})

        projects.reject(admin, pid)
        assert notifier.events == []

        project, changed = projects.approve(admin, pid)
        assert changed is True
        assert project["status"] == "approved"
        assert len(notifier.events) == 3
        assert {e.event_type for e in notifier.events} == {EventType.project_approved}
        assert sorted(e.recipient for e in notifier.events) == [
            "user0@example.com", "user1@example.com", "user2@example.com"
        ]

    def test_pending_project_with_seeded_applications(self, projects, admin, db, notifier):
        project = projects.create(admin, PROJECT)
        apps = ApplicationService(db)
        users = UserService(db)
        for i in range(2):
            user = users.insert(f"U{i}", f"u{i}@example.com", "x", "user")
            apps.insert(project, user)

        projects.approve(admin, str(project["_id"]))
        assert len(notifier.events) == 2

    def test_repeat_approval_is_a_no_op(self, projects, applications, admin, make_user, notifier, approved_project):
        pid = str(approved_project["_id"])
        applications.create(make_user(), {"projectId": pid})

        project, changed = projects.approve(admin, pid)
        assert changed is False
        assert project["status"] == "approved"
        assert notifier.events == []

    def test_rejection_sends_nothing(self, projects, admin, notifier):
        project = projects.create(admin, PROJECT)
        updated, changed = projects.reject(admin, str(project["_id"]))
        assert changed and updated["status"] == "rejected"
        assert notifier.events == []

    def test_users_cannot_transition(self, projects, admin, make_user):
        project = projects.create(admin, PROJECT)
        with pytest.raises(AuthorizationError):
            projects.approve(make_user(), str(project["_id"]))

    def test_unknown_project(self, projects, admin):
        with pytest.raises(NotFoundError, match="Project not found"):
            projects.approve(admin, str(ObjectId()))


class TestProjectDeletion:
    def test_delete_cascades_to_applications(self, projects, applications, admin, make_user, db, approved_project):
        pid = str(approved_project["_id"])
        applications.create(make_user("A", "a@example.com"), {"projectId": pid})
        applications.create(make_user("B", "b@example.com"), {"projectId": pid})

        other = projects.create(admin, dict(PROJECT, name="Other"))
        projects.approve(admin, str(other["_id"]))
        applications.create(make_user("C", "c@example.com"), {"projectId": str(other["_id"])})

        assert projects.delete(admin, pid) == 2
        assert ApplicationService(db).count({"projectId": approved_project["_id"]}) == 0
        assert ApplicationService(db).count() == 1
        assert ProjectService(db).get_by_id(approved_project["_id"]) is None

    def test_delete_missing_project(self, projects, admin):
        with pytest.raises(NotFoundError):
            projects.delete(admin, str(ObjectId()))


class TestApplicationCreation:
    def test_cannot_apply_to_pending_project(self, projects, applications, admin, make_user, db):
        project = projects.create(admin, PROJECT)
        with pytest.raises(ValidationError, match="Cannot apply to non-approved projects"):
            applications.create(make_user(), {"projectId": str(project["_id"])})
        assert ApplicationService(db).count() == 0

    def test_cannot_apply_to_rejected_project(self, projects, applications, admin, make_user):
        project = projects.create(admin, PROJECT)
        projects.reject(admin, str(project["_id"]))
        with pytest.raises(ValidationError):
            applications.create(make_user(), {"projectId": str(project["_id"])})

    def test_application_snapshots_names(self, applications, make_user, db, approved_project):
        user = make_user("Alice", "alice@example.com")
        application = applications.create(user, {"projectId": str(approved_project["_id"])})
        assert application["status"] == "pending"
        assert application["userName"] == "Alice"
        assert application["userEmail"] == "alice@example.com"
        assert application["projectName"] == "Site Redesign"

        # Later edits do not flow into the snapshot
        db["users"].update_one({"_id": user["_id"]}, {"$set": {"name": "Alice Renamed"}})
        db["projects"].update_one({"_id": approved_project["_id"]}, {"$set": {"name": "Renamed"}})
        stored = ApplicationService(db).get_by_id(application["_id"])
        assert stored["userName"] == "Alice"
        assert stored["projectName"] == "Site Redesign"

    def test_second_application_conflicts(self, applications, make_user, db, approved_project):
        user = make_user()
        payload = {"projectId": str(approved_project["_id"])}
        applications.create(user, payload)
        with pytest.raises(ConflictError, match="already applied"):
            applications.create(user, payload)
        assert ApplicationService(db).count() == 1

    def test_unique_index_conflict_is_mapped(self, applications, make_user, db, approved_project, monkeypatch):
        user = make_user()
        payload = {"projectId": str(approved_project["_id"])}
        applications.create(user, payload)

        # Simulate a concurrent request that passed the existence check
        monkeypatch.setattr(applications.applications, "exists", lambda *args: False)
        with pytest.raises(ConflictError, match="already applied"):
            applications.create(user, payload)
        assert ApplicationService(db).count() == 1

    def test_unknown_project(self, applications, make_user):
        with pytest.raises(NotFoundError, match="Project not found"):
            applications.create(make_user(), {"projectId": str(ObjectId())})

    def test_malformed_project_id(self, applications, make_user):
        with pytest.raises(ValidationError):
            applications.create(make_user(), {"projectId": "123"})


class TestApplicationTransitions:
    @pytest.fixture
    def application(self, applications, make_user, approved_project):
        return applications.create(make_user(), {"projectId": str(approved_project["_id"])})

    def test_approve_sends_one_notification(self, applications, admin, notifier, application):
        updated, changed = applications.approve(admin, str(application["_id"]))
        assert changed is True
        assert updated["status"] == "approved"
        assert len(notifier.events) == 1
        assert notifier.events[0].event_type == EventType.application_approved
        assert notifier.events[0].recipient == "alice@example.com"

    def test_reject_sends_one_notification(self, applications, admin, notifier, application):
        updated, _ = applications.reject(admin, str(application["_id"]))
        assert updated["status"] == "rejected"
        assert [e.event_type for e in notifier.events] == [EventType.application_rejected]

    def test_repeat_decision_is_a_no_op(self, applications, admin, notifier, application):
        applications.approve(admin, str(application["_id"]))
        _, changed = applications.approve(admin, str(application["_id"]))
        assert changed is False
        assert len(notifier.events) == 1

    def test_users_cannot_decide(self, applications, make_user, application):
        with pytest.raises(AuthorizationError):
            applications.approve(make_user("Mallory", "mallory@example.com"), str(application["_id"]))

    def test_unknown_application(self, applications, admin):
        with pytest.raises(NotFoundError, match="Application not found"):
            applications.reject(admin, "nope")


class TestApplicationListing:
    def test_my_applications_are_own_only(self, applications, make_user, approved_project):
        alice = make_user("Alice", "alice@example.com")
        bob = make_user("Bob", "bob@example.com")
        pid = str(approved_project["_id"])
        applications.create(alice, {"projectId": pid})
        applications.create(bob, {"projectId": pid})

        mine = applications.list_mine(alice)
        assert len(mine) == 1
        assert mine[0]["userId"] == alice["_id"]
        assert mine[0]["projectId"]["name"] == "Site Redesign"
        assert mine[0]["projectId"]["status"] == "approved"

    def test_admin_listing_populates_and_filters(self, applications, projects, admin, make_user, approved_project):
        other = projects.create(admin, dict(PROJECT, name="Other"))
        projects.approve(admin, str(other["_id"]))
        user = make_user()
        applications.create(user, {"projectId": str(approved_project["_id"])})
        applications.create(user, {"projectId": str(other["_id"])})

        everything = applications.list_all(admin)
        assert len(everything) == 2
        assert everything[0]["userId"]["email"] == "alice@example.com"

        filtered = applications.list_all(admin, str(other["_id"]))
        assert [a["projectId"]["name"] for a in filtered] == ["Other"]

    def test_users_cannot_list_all(self, applications, make_user):
        with pytest.raises(AuthorizationError):
            applications.list_all(make_user(), "bad-id")

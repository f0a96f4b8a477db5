"""
Formal task and store-rejection tests (API level).
"""

import pytest

from app.models.audit import AuditLog
from app.models.workflow import SubmissionReview


@pytest.fixture()
def owned_client(make_client, team_member):
    return make_client(team_member)


@pytest.fixture()
def headers(team_member, auth_headers):
    return auth_headers(team_member)


def _tasks_url(client_id):
    return f"/api/v1/clients/{client_id}/tasks"


class TestCreateTask:
    def test_website_task(self, client, owned_client, headers):
        res = client.post(_tasks_url(owned_client.id),
                          json={"kind": "website", "name": "Landing page"}, headers=headers)
        assert res.status_code == 201
        body = res.get_json()
        assert body["taskName"] == "Landing page"
        assert body["status"] == "NOT_STARTED"
        assert body["responsibility"] is None
        assert AuditLog.query.filter_by(action="TASK_CREATED").count() == 1

    def test_store_asset_type_is_uppercased(self, client, owned_client, headers):
        res = client.post(_tasks_url(owned_client.id),
                          json={"kind": "store_asset", "name": "icon"}, headers=headers)
        assert res.status_code == 201
        assert res.get_json()["assetType"] == "ICON"

    def test_unknown_asset_type(self, client, owned_client, headers):
        res = client.post(_tasks_url(owned_client.id),
                          json={"kind": "store_asset", "name": "VIDEO"}, headers=headers)
        assert res.status_code == 422

    def test_unknown_kind(self, client, owned_client, headers):
        res = client.post(_tasks_url(owned_client.id),
                          json={"kind": "seo", "name": "Keywords"}, headers=headers)
        assert res.status_code == 422
        assert res.get_json()["details"] == {"field": "kind"}


class TestStatusTransitions:
    def _create(self, client, client_id, headers, kind="app_development"):
        res = client.post(_tasks_url(client_id), json={"kind": kind, "name": "Build APK"},
                          headers=headers)
        return res.get_json()["id"]

    def test_happy_path_sets_responsibility(self, client, owned_client, headers):
        task_id = self._create(client, owned_client.id, headers)
        url = f"{_tasks_url(owned_client.id)}/app_development/{task_id}"

        body = client.patch(url, json={"status": "IN_PROGRESS"}, headers=headers).get_json()
        assert (body["status"], body["responsibility"]) == ("IN_PROGRESS", "COMPANY")

        body = client.patch(url, json={"status": "PENDING_CLIENT", "reason": "Need logo"},
                            headers=headers).get_json()
        assert (body["responsibility"], body["blockedReason"]) == ("CLIENT", "Need logo")

        body = client.patch(url, json={"status": "IN_PROGRESS"}, headers=headers).get_json()
        assert body["blockedReason"] is None

        body = client.patch(url, json={"status": "COMPLETED"}, headers=headers).get_json()
        assert (body["status"], body["responsibility"]) == ("COMPLETED", None)

        actions = [log.action for log in AuditLog.query.order_by(AuditLog.id).all()]
        assert actions[-4:] == [
            "STATUS_CHANGED_TO_IN_PROGRESS",
            "STATUS_CHANGED_TO_PENDING_CLIENT",
            "STATUS_CHANGED_TO_IN_PROGRESS",
            "STATUS_CHANGED_TO_COMPLETED",
        ]

    def test_invalid_transition(self, client, owned_client, headers):
        task_id = self._create(client, owned_client.id, headers)
        url = f"{_tasks_url(owned_client.id)}/app_development/{task_id}"
        res = client.patch(url, json={"status": "COMPLETED"}, headers=headers)
        assert res.status_code == 422
        assert "NOT_STARTED -> COMPLETED" in res.get_json()["error"]

    def test_completed_is_terminal(self, client, owned_client, headers):
        task_id = self._create(client, owned_client.id, headers)
        url = f"{_tasks_url(owned_client.id)}/app_development/{task_id}"
        client.patch(url, json={"status": "IN_PROGRESS"}, headers=headers)
        client.patch(url, json={"status": "COMPLETED"}, headers=headers)
        res = client.patch(url, json={"status": "IN_PROGRESS"}, headers=headers)
        assert res.status_code == 422

    def test_same_status_writes_no_audit(self, client, owned_client, headers):
        task_id = self._create(client, owned_client.id, headers)
        url = f"{_tasks_url(owned_client.id)}/app_development/{task_id}"
        res = client.patch(url, json={"status": "NOT_STARTED"}, headers=headers)
        assert res.status_code == 200
        assert AuditLog.query.filter(AuditLog.action.like("STATUS_CHANGED_TO_%")).count() == 0

    def test_task_of_other_client_is_404(self, client, owned_client, make_client, team_member,
                                         headers):
        other = make_client(team_member)
        task_id = self._create(client, other.id, headers)
        res = client.patch(f"{_tasks_url(owned_client.id)}/app_development/{task_id}",
                           json={"status": "IN_PROGRESS"}, headers=headers)
        assert res.status_code == 404

    def test_progress(self, client, owned_client, headers):
        first = self._create(client, owned_client.id, headers, kind="website")
        self._create(client, owned_client.id, headers, kind="website")
        url = f"{_tasks_url(owned_client.id)}/website/{first}"
        client.patch(url, json={"status": "IN_PROGRESS"}, headers=headers)
        client.patch(url, json={"status": "COMPLETED"}, headers=headers)

        body = client.get(f"{_tasks_url(owned_client.id)}/progress", headers=headers).get_json()
        assert body["website"] == {"percentage": 50, "completed": 1, "total": 2, "blocked": 0}
        assert body["storeAssets"]["total"] == 0


class TestSubmissionRejection:
    def test_client_fault_recorded(self, client, owned_client, headers):
        res = client.post(f"/api/v1/clients/{owned_client.id}/submission/rejection",
                          json={"reason": "Missing privacy policy link"}, headers=headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body["attribution"]["responsibility"] == "CLIENT"
        assert body["attribution"]["matchedPattern"] == "privacy policy"
        assert body["submissionReview"]["reviewStatus"] == "FAILED"

        review = SubmissionReview.query.filter_by(client_id=owned_client.id).one()
        assert review.responsibility == "CLIENT"
        log = AuditLog.query.filter_by(action="REJECTION_ATTRIBUTED").one()
        assert log.new["responsibility"] == "CLIENT"
        assert log.new["confidence"] == "HIGH"

    def test_company_fault(self, client, owned_client, headers):
        res = client.post(f"/api/v1/clients/{owned_client.id}/submission/rejection",
                          json={"reason": "App crashes on startup"}, headers=headers)
        assert res.get_json()["attribution"]["responsibility"] == "COMPANY"

    def test_reason_required(self, client, owned_client, headers):
        res = client.post(f"/api/v1/clients/{owned_client.id}/submission/rejection",
                          json={"reason": "  "}, headers=headers)
        assert res.status_code == 422


class TestSubmissionReviewStatus:
    def _url(self, client_id):
        return f"/api/v1/clients/{client_id}/submission"

    def test_pending_client_blocks_payment_and_extends_timeline(self, client, owned_client,
                                                                 headers):
        res = client.patch(self._url(owned_client.id),
                           json={"status": "PENDING_CLIENT", "reason": "Store listing copy"},
                           headers=headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body["reviewStatus"] == "PENDING_CLIENT"
        assert body["responsibility"] == "CLIENT"

        eligibility = client.get(f"/api/v1/clients/{owned_client.id}/milestones",
                                 headers=headers).get_json()["eligibility"]
        assert eligibility["eligible"] is False
        assert eligibility["blockedBy"] == ["App not yet published",
                                            "App review waiting on client action"]

        extension = client.get(f"/api/v1/clients/{owned_client.id}/timeline-extension",
                               headers=headers).get_json()
        assert extension["daysExtended"] == 1
        assert extension["reasons"][0].startswith("submission_reviews blocked on ")

    def test_invalid_transition(self, client, owned_client, headers):
        res = client.patch(self._url(owned_client.id), json={"status": "COMPLETED"},
                           headers=headers)
        assert res.status_code == 422
        assert SubmissionReview.query.filter_by(client_id=owned_client.id).count() == 0

    def test_same_status_is_noop(self, client, owned_client, headers):
        res = client.patch(self._url(owned_client.id), json={"status": "NOT_STARTED"},
                           headers=headers)
        assert res.status_code == 200
        assert AuditLog.query.filter(AuditLog.action.like("STATUS_CHANGED_TO_%")).count() == 0

"""
Payment release engine tests.

Covers the first-match-wins eligibility rules, the milestone lifecycle
(create → eligible → release exactly once) and the client-caused
timeline extension.
"""

from types import SimpleNamespace

import pytest

from app.models import db
from app.models.audit import AuditLog
from app.models.workflow import PaymentMilestone, SubmissionReview, WebsiteTask
from app.services.payment_release import (
    REASON_NONE,
    REASON_PUBLISHED,
    REASON_WEBSITE_BLOCKED,
    REASON_WEBSITE_DONE,
    evaluate_eligibility,
)


def _task(name, status):
    return SimpleNamespace(task_name=name, status=status)


def _review(published=False, live_url=None, review_status="NOT_STARTED"):
    return SimpleNamespace(published=published, live_url=live_url, review_status=review_status)


# ═════════════════════════════════════════════════════════════════════════════
# Pure evaluation
# ═════════════════════════════════════════════════════════════════════════════


class TestEvaluateEligibility:
    def test_published_with_live_url_wins(self):
        result = evaluate_eligibility(
            _review(True, "https://play.google.com/x"), [_task("Design", "BLOCKED")], [],
        )
        assert result["eligible"] is True
        assert result["reason"] == REASON_PUBLISHED

    def test_published_without_url_falls_through(self):
        result = evaluate_eligibility(_review(True, None), [], [])
        assert result["eligible"] is False
        assert result["reason"] == REASON_NONE

    def test_all_website_tasks_completed(self):
        tasks = [_task("Design", "COMPLETED"), _task("Hosting", "COMPLETED")]
        result = evaluate_eligibility(None, tasks, [])
        assert result == {"eligible": True, "reason": REASON_WEBSITE_DONE,
                          "milestoneName": "Website Completion", "blockedBy": []}

    def test_blocked_task_named(self):
        tasks = [_task("Design", "COMPLETED"), _task("DNS Setup", "BLOCKED"),
                 _task("Hosting", "IN_PROGRESS")]
        result = evaluate_eligibility(None, tasks, [])
        assert result == {"eligible": False, "reason": REASON_WEBSITE_BLOCKED,
                          "blockedBy": ["DNS Setup"]}

    def test_blocked_task_short_circuits_milestones(self):
        milestone = SimpleNamespace(id=1, milestone_name="Advance", amount=100.0)
        result = evaluate_eligibility(None, [_task("Copy", "PENDING_CLIENT")], [milestone])
        assert result["eligible"] is False
        assert result["blockedBy"] == ["Copy"]

    def test_eligible_milestone(self):
        milestone = SimpleNamespace(id=7, milestone_name="Advance", amount=250.0)
        result = evaluate_eligibility(None, [_task("Hosting", "IN_PROGRESS")], [milestone])
        assert result["eligible"] is True
        assert result["milestoneId"] == 7
        assert result["amount"] == 250.0
        assert result["reason"] == "Milestone completed: Advance"

    def test_nothing_met(self):
        result = evaluate_eligibility(
            _review(review_status="PENDING_CLIENT"), [_task("Hosting", "IN_PROGRESS")], [],
        )
        assert result["eligible"] is False
        assert result["blockedBy"] == [
            "App not yet published",
            "App review waiting on client action",
            "1 website task(s) incomplete",
        ]


# ═════════════════════════════════════════════════════════════════════════════
# Milestone lifecycle via the API
# ═════════════════════════════════════════════════════════════════════════════


@pytest.fixture()
def owned_client(make_client, team_member):
    return make_client(team_member)


class TestMilestoneFlow:
    def test_create_release_once(self, client, owned_client, team_member, super_admin,
                                 auth_headers):
        owner = auth_headers(team_member)
        admin = auth_headers(super_admin)

        res = client.post(f"/api/v1/clients/{owned_client.id}/milestones",
                          json={"name": "Advance", "amount": 500}, headers=owner)
        assert res.status_code == 201
        milestone_id = res.get_json()["id"]

        res = client.post(f"/api/v1/milestones/{milestone_id}/release", headers=admin)
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_NOT_ELIGIBLE"

        res = client.patch(f"/api/v1/milestones/{milestone_id}", json={"eligible": True},
                           headers=owner)
        assert res.status_code == 200
        assert res.get_json()["eligibleForPayment"] is True

        res = client.post(f"/api/v1/milestones/{milestone_id}/release", headers=admin)
        assert res.status_code == 200
        body = res.get_json()
        assert body["released"] is True
        assert body["releasedById"] == super_admin.id
        assert body["releasedAt"] is not None

        res = client.post(f"/api/v1/milestones/{milestone_id}/release", headers=admin)
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_STATE"
        assert AuditLog.query.filter_by(action="PAYMENT_RELEASED").count() == 1

    def test_team_member_cannot_release(self, client, owned_client, team_member, auth_headers):
        milestone = PaymentMilestone(client_id=owned_client.id, milestone_name="Advance",
                                     amount=100.0, eligible_for_payment=True)
        db.session.add(milestone)
        db.session.commit()

        res = client.post(f"/api/v1/milestones/{milestone.id}/release",
                          headers=auth_headers(team_member))
        assert res.status_code == 403
        db.session.expire_all()
        assert db.session.get(PaymentMilestone, milestone.id).released is False

    def test_release_unknown_milestone(self, client, super_admin, auth_headers):
        res = client.post("/api/v1/milestones/999/release", headers=auth_headers(super_admin))
        assert res.status_code == 404

    def test_released_milestone_eligibility_is_frozen(self, client, owned_client, team_member,
                                                      auth_headers):
        milestone = PaymentMilestone(client_id=owned_client.id, milestone_name="Advance",
                                     amount=100.0, eligible_for_payment=True, released=True)
        db.session.add(milestone)
        db.session.commit()
        res = client.patch(f"/api/v1/milestones/{milestone.id}", json={"eligible": False},
                           headers=auth_headers(team_member))
        assert res.status_code == 409

    def test_invalid_amount(self, client, owned_client, team_member, auth_headers):
        res = client.post(f"/api/v1/clients/{owned_client.id}/milestones",
                          json={"name": "Advance", "amount": -5},
                          headers=auth_headers(team_member))
        assert res.status_code == 422
        assert res.get_json()["details"] == {"field": "amount"}


class TestPaymentOverview:
    def test_website_tasks_complete(self, client, owned_client, team_member, auth_headers):
        for name in ("Design", "Hosting"):
            db.session.add(WebsiteTask(client_id=owned_client.id, task_name=name,
                                       status="COMPLETED"))
        db.session.commit()

        res = client.get(f"/api/v1/clients/{owned_client.id}/milestones",
                         headers=auth_headers(team_member))
        assert res.status_code == 200
        assert res.get_json()["eligibility"]["reason"] == REASON_WEBSITE_DONE

    def test_published_review(self, client, owned_client, team_member, auth_headers):
        db.session.add(SubmissionReview(client_id=owned_client.id, published=True,
                                        live_url="https://play.google.com/x"))
        db.session.commit()
        res = client.get(f"/api/v1/clients/{owned_client.id}/milestones",
                         headers=auth_headers(team_member))
        assert res.get_json()["eligibility"]["reason"] == REASON_PUBLISHED

    def test_scope_enforced(self, client, owned_client, make_user, auth_headers):
        outsider = make_user()
        res = client.get(f"/api/v1/clients/{owned_client.id}/milestones",
                         headers=auth_headers(outsider))
        assert res.status_code == 403


# ═════════════════════════════════════════════════════════════════════════════
# Timeline extension
# ═════════════════════════════════════════════════════════════════════════════


class TestTimelineExtension:
    def test_counts_client_caused_events(self, client, owned_client, team_member, auth_headers):
        headers = auth_headers(team_member)
        base = f"/api/v1/clients/{owned_client.id}/tasks"

        task_id = client.post(base, json={"kind": "website", "name": "DNS Setup"},
                              headers=headers).get_json()["id"]
        for status in ("PENDING_CLIENT", "BLOCKED", "IN_PROGRESS"):
            res = client.patch(f"{base}/website/{task_id}", json={"status": status},
                               headers=headers)
            assert res.status_code == 200

        res = client.get(f"/api/v1/clients/{owned_client.id}/timeline-extension",
                         headers=headers)
        body = res.get_json()
        assert body["daysExtended"] == 2
        assert all(r.startswith("website_tasks blocked on ") for r in body["reasons"])

    def test_no_events(self, client, owned_client, team_member, auth_headers):
        res = client.get(f"/api/v1/clients/{owned_client.id}/timeline-extension",
                         headers=auth_headers(team_member))
        assert res.get_json() == {"daysExtended": 0, "reasons": []}

"""HTTP API tests via Flask's test client."""

import pytest

from constants import ROLE_ACADEMIC_STAFF, ROLE_DEAN, TYPE_GENERIC, TYPE_LEAVE, USER_STATUS_INACTIVE
from models import AuditLog, Notification, ServiceRequest, WorkflowConfig


class TestAuth:
    def test_login_me_logout(self, client, login, org):
        resp = login(org["staff"])
        assert resp.status_code == 200
        assert resp.get_json()["email"] == org["staff"].email

        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.get_json()["id"] == org["staff"].id

        assert client.post("/api/auth/logout").status_code == 200
        assert client.get("/api/auth/me").status_code == 401

    def test_bad_password(self, login, org):
        resp = login(org["staff"], password="wrong")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "invalid_credentials"

    def test_inactive_user(self, db, login, org):
        org["staff"].status = USER_STATUS_INACTIVE
        db.session.commit()
        assert login(org["staff"]).status_code == 403

    @pytest.mark.parametrize("body", [["someone"], {"email": 42, "password": "x"}, {"email": "a@b.c", "password": 7}])
    def test_malformed_login_is_401(self, client, org, body):
        resp = client.post("/api/auth/login", json=body)
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "invalid_credentials"

    def test_login_required_is_json(self, client, org):
        resp = client.get("/api/requests")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "unauthorized"


class TestRequests:
    def test_create_list_and_view(self, client, login, org, leave_payload):
        login(org["staff"])
        resp = client.post("/api/requests", json=leave_payload)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["status"] == "pending"
        assert body["currentApproverId"] == org["hod"].id

        listed = client.get("/api/requests?status=pending").get_json()
        assert [r["id"] for r in listed] == [body["id"]]
        assert client.get("/api/requests?status=approved").get_json() == []

        assert client.get(f"/api/requests/{body['id']}").status_code == 200

    def test_save_as_draft(self, client, login, org, leave_payload):
        login(org["staff"])
        resp = client.post("/api/requests", json=dict(leave_payload, submit=False))
        assert resp.status_code == 201
        assert resp.get_json()["status"] == "draft"

    def test_validation_error_shape(self, client, login, org):
        login(org["staff"])
        resp = client.post("/api/requests", json={"requestType": TYPE_LEAVE, "title": "x"})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "validation_error"
        assert "title" in body["fields"]

    def test_no_workflow_is_422(self, db, client, login, org):
        WorkflowConfig.query.filter_by(request_type=TYPE_GENERIC).delete()
        db.session.commit()

        login(org["staff"])
        resp = client.post("/api/requests", json={
            "requestType": TYPE_GENERIC,
            "title": "Office keys",
            "description": "Need a spare key for room 12.",
        })
        assert resp.status_code == 422
        assert resp.get_json()["error"] == "no_workflow_configured"
        assert ServiceRequest.query.count() == 0

    def test_view_is_forbidden_for_outsiders(self, client, login, org, make_user, leave_payload):
        login(org["staff"])
        req_id = client.post("/api/requests", json=leave_payload).get_json()["id"]

        outsider = make_user(ROLE_ACADEMIC_STAFF, department=org["department"])
        login(outsider)
        assert client.get(f"/api/requests/{req_id}").status_code == 403
        assert client.get(f"/api/requests/{req_id}/timeline").status_code == 403

    def test_non_object_body_is_400(self, client, login, org):
        login(org["staff"])
        resp = client.post("/api/requests", json=["leave", "please"])
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"
        assert ServiceRequest.query.count() == 0

    def test_unknown_request_is_404(self, client, login, org):
        login(org["staff"])
        resp = client.get("/api/requests/9999")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "not_found"


class TestApprovals:
    def _submit(self, client, login, org, payload):
        login(org["staff"])
        return client.post("/api/requests", json=payload).get_json()["id"]

    def test_pending_inbox_and_approve(self, client, login, org, leave_payload):
        req_id = self._submit(client, login, org, leave_payload)

        login(org["hod"])
        inbox = client.get("/api/approvals/pending").get_json()
        assert [r["id"] for r in inbox] == [req_id]

        resp = client.post(f"/api/requests/{req_id}/action", json={"action": "approve", "comment": "ok"})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["workflowStage"] == 1
        assert body["currentApproverId"] == org["dean"].id

        assert client.get("/api/approvals/pending").get_json() == []

        timeline = client.get(f"/api/requests/{req_id}/timeline").get_json()
        assert timeline[0]["action"].startswith("Request approved by")
        assert timeline[0]["userName"] == org["hod"].full_name

    def test_error_statuses(self, client, login, org, leave_payload):
        req_id = self._submit(client, login, org, leave_payload)

        login(org["dean"])
        resp = client.post(f"/api/requests/{req_id}/action", json={"action": "approve"})
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "not_authorized_approver"

        login(org["hod"])
        resp = client.post(f"/api/requests/{req_id}/action", json={"action": "reject"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "comment_required"

        resp = client.post(f"/api/requests/{req_id}/action",
                           json={"action": "approve", "workflowStage": 2})
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "concurrent_modification"

        resp = client.post(f"/api/requests/{req_id}/action", json={"action": "reject", "comment": "no"})
        assert resp.status_code == 200

        resp = client.post(f"/api/requests/{req_id}/action", json={"action": "approve"})
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "already_finalized"

    @pytest.mark.parametrize("body", [
        {"action": 1},
        {"action": "reject", "comment": 123},
        {"action": ["approve"]},
        ["approve"],
    ])
    def test_malformed_action_is_400(self, db, client, login, org, leave_payload, body):
        req_id = self._submit(client, login, org, leave_payload)

        login(org["hod"])
        resp = client.post(f"/api/requests/{req_id}/action", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"
        assert db.session.get(ServiceRequest, req_id).status == "pending"

    def test_malformed_requester_bodies_are_400(self, client, login, org, leave_payload):
        req_id = self._submit(client, login, org, leave_payload)

        assert client.post(f"/api/requests/{req_id}/resubmit", json=[1, 2]).status_code == 400
        resp = client.post(f"/api/requests/{req_id}/cancel", json={"reason": 5})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"

    def test_modification_round_trip(self, client, login, org, leave_payload):
        req_id = self._submit(client, login, org, leave_payload)

        login(org["hod"])
        client.post(f"/api/requests/{req_id}/action",
                    json={"action": "request_modification", "comment": "add details"})

        login(org["staff"])
        resp = client.post(f"/api/requests/{req_id}/resubmit",
                           json={"description": "Annual leave, substitute confirmed in writing."})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "pending"
        assert body["currentApproverId"] == org["hod"].id

    def test_cancel_and_complete(self, client, login, org):
        payload = {
            "requestType": TYPE_GENERIC,
            "title": "Office keys",
            "description": "Need a spare key for room 12.",
        }
        first = self._submit(client, login, org, payload)
        second = client.post("/api/requests", json=payload).get_json()["id"]

        resp = client.post(f"/api/requests/{first}/cancel", json={"reason": "found it"})
        assert resp.get_json()["status"] == "cancelled"

        login(org["hod"])
        client.post(f"/api/requests/{second}/action", json={"action": "approve"})

        login(org["registrar"])
        resp = client.post(f"/api/requests/{second}/complete", json={"comment": "done"})
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "completed"


class TestNotifications:
    def test_list_read_and_delete(self, client, login, org, leave_payload):
        login(org["staff"])
        client.post("/api/requests", json=leave_payload)

        login(org["hod"])
        body = client.get("/api/notifications/").get_json()
        assert body["unread"] == 1
        note_id = body["items"][0]["id"]

        assert client.patch(f"/api/notifications/{note_id}/read").status_code == 200
        assert client.get("/api/notifications/").get_json()["unread"] == 0

        # someone else's notification looks like it does not exist
        login(org["staff"])
        assert client.delete(f"/api/notifications/{note_id}").status_code == 404

        login(org["hod"])
        assert client.delete(f"/api/notifications/{note_id}").status_code == 204
        assert Notification.query.count() == 0

    def test_mark_all_read(self, client, login, org, leave_payload):
        login(org["staff"])
        client.post("/api/requests", json=leave_payload)
        client.post("/api/requests", json=leave_payload)

        login(org["hod"])
        resp = client.patch("/api/notifications/mark-all-read")
        assert resp.get_json()["updated"] == 2


class TestAdmin:
    def test_admin_only(self, client, login, org):
        login(org["staff"])
        assert client.get("/api/admin/workflows").status_code == 403

    def test_save_department_workflow(self, client, login, org):
        login(org["sysadmin"])
        resp = client.put(f"/api/admin/workflows/{TYPE_LEAVE}", json={
            "stages": [{"role": "admin_officer"}, {"role": "registrar", "label": "Registry"}],
            "departmentId": org["department"].id,
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["departmentId"] == org["department"].id
        assert [s["role"] for s in body["stages"]] == ["admin_officer", "registrar"]
        assert AuditLog.query.filter_by(action="update_workflow").count() == 1

        listed = client.get("/api/admin/workflows").get_json()
        assert any(c["id"] == body["id"] for c in listed)

        assert client.delete(f"/api/admin/workflows/{body['id']}").status_code == 204

    def test_default_workflow_cannot_be_deleted(self, client, login, org):
        login(org["sysadmin"])
        cfg = WorkflowConfig.query.filter_by(request_type=TYPE_LEAVE, department_id=None).one()
        assert client.delete(f"/api/admin/workflows/{cfg.id}").status_code == 400

    def test_bad_stage_list(self, client, login, org):
        login(org["sysadmin"])
        resp = client.put(f"/api/admin/workflows/{TYPE_LEAVE}", json={"stages": []})
        assert resp.status_code == 400

    def test_faculty_and_department_upkeep(self, db, client, login, org, make_user):
        login(org["sysadmin"])
        fac = client.post("/api/admin/faculties", json={"name": "Arts", "code": "art"}).get_json()
        assert fac["code"] == "ART"

        dup = client.post("/api/admin/faculties", json={"name": "Arts", "code": "ART"})
        assert dup.status_code == 400

        dean = make_user(ROLE_DEAN)
        resp = client.put(f"/api/admin/faculties/{fac['id']}/appoint-dean", json={"userId": dean.id})
        assert resp.get_json()["deanId"] == dean.id
        db.session.refresh(dean)
        assert dean.faculty_id == fac["id"]

        resp = client.put(f"/api/admin/faculties/{fac['id']}/appoint-dean", json={"userId": org["staff"].id})
        assert resp.status_code == 400

        dept = client.post("/api/admin/departments",
                           json={"name": "History", "code": "HIS", "facultyId": fac["id"]}).get_json()
        resp = client.put(f"/api/admin/departments/{dept['id']}/assign-hod", json={"userId": org["staff"].id})
        assert resp.status_code == 200
        assert resp.get_json()["hodId"] == org["staff"].id
        assert AuditLog.query.filter_by(action="hod_role_mismatch").count() == 1

    def test_user_upkeep_and_audit_search(self, client, login, org):
        login(org["sysadmin"])
        resp = client.post("/api/admin/users", json={
            "staffNumber": "STAFF900",
            "email": "New.Person@example.edu",
            "fullName": "New Person",
            "role": "academic_staff",
            "password": "pw123456",
            "departmentId": org["department"].id,
        })
        assert resp.status_code == 201
        user = resp.get_json()
        assert user["email"] == "new.person@example.edu"

        resp = client.put(f"/api/admin/users/{user['id']}", json={"role": "dean"})
        assert resp.get_json()["role"] == "dean"

        assert client.put(f"/api/admin/users/{user['id']}", json={"role": "bursar"}).status_code == 400

        logs = client.get("/api/admin/audit-logs?action=create_user").get_json()
        assert len(logs) == 1
        assert logs[0]["resourceId"] == str(user["id"])

    @pytest.mark.parametrize("path, body", [
        ("/api/admin/faculties", ["Arts"]),
        ("/api/admin/faculties", {"name": 42, "code": "ART"}),
        ("/api/admin/departments", {"name": "History", "code": ["HIS"]}),
        ("/api/admin/users", {"staffNumber": 9, "email": "x@example.edu", "fullName": "X",
                              "role": "dean", "password": "pw123456"}),
    ])
    def test_malformed_admin_bodies_are_400(self, client, login, org, path, body):
        login(org["sysadmin"])
        resp = client.post(path, json=body)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"

    def test_malformed_stage_role_is_400(self, client, login, org):
        login(org["sysadmin"])
        resp = client.put(f"/api/admin/workflows/{TYPE_LEAVE}", json={"stages": [{"role": 3}]})
        assert resp.status_code == 400

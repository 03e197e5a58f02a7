from dataclasses import replace
from datetime import datetime

from fastapi.testclient import TestClient

from conftest import TEST_SETTINGS, auth_headers, create_task, register
from tracker_api.main import create_app
from tracker_api.repositories import InMemoryTaskRepository, InMemoryUserRepository


def assert_task_shape(task: dict):
    for key in ["_id", "title", "description", "priority", "status", "userId", "createdAt", "updatedAt"]:
        assert key in task
    assert isinstance(task["_id"], str)
    assert task["priority"] in ("High", "Medium", "Low")
    assert task["status"] in ("Pending", "Completed")
    datetime.fromisoformat(task["createdAt"].replace("Z", "+00:00"))
    datetime.fromisoformat(task["updatedAt"].replace("Z", "+00:00"))


class TestAccessGuard:
    def test_missing_authorization_header(self, client):
        res = client.get("/tasks")
        assert res.status_code == 401
        body = res.json()
        assert body["success"] is False
        assert body["error"] == "MissingCredential"
        assert body["message"]

    def test_non_bearer_scheme(self, client, alice):
        res = client.get("/tasks", headers={"Authorization": f"Basic {alice['token']}"})
        assert res.status_code == 401
        assert res.json()["error"] == "MissingCredential"

    def test_bearer_without_token(self, client):
        res = client.get("/tasks", headers={"Authorization": "Bearer"})
        assert res.status_code == 401
        assert res.json()["error"] == "MissingCredential"

    def test_garbage_token(self, client):
        res = client.get("/tasks", headers=auth_headers("not.a.token"))
        assert res.status_code == 401
        assert res.json()["error"] == "InvalidCredential"

    def test_tampered_token(self, client, alice):
        payload, signature = alice["token"].rsplit(".", 1)
        forged = ("A" if signature[0] != "A" else "B") + signature[1:]
        tampered = ".".join([payload, forged])
        res = client.get("/tasks", headers=auth_headers(tampered))
        assert res.status_code == 401
        assert res.json()["error"] == "InvalidCredential"

    def test_token_from_other_secret(self, client):
        other = TestClient(create_app(replace(TEST_SETTINGS, token_secret="other-secret")))
        foreign = register(other, "mallory@x.com", "secret1")["token"]
        res = client.get("/tasks", headers=auth_headers(foreign))
        assert res.status_code == 401
        assert res.json()["error"] == "InvalidCredential"

    def test_every_task_route_is_guarded(self, client):
        calls = [
            client.get("/tasks"),
            client.post("/tasks", json={"title": "A", "priority": "High"}),
            client.put("/tasks/abc", json={"title": "B"}),
            client.delete("/tasks/abc"),
            client.patch("/tasks/abc/complete"),
        ]
        assert [c.status_code for c in calls] == [401] * 5

    def test_rejected_before_validation(self, client):
        # Well-formed JSON with invalid fields still yields 401 without credentials.
        res = client.post("/tasks", json={"priority": "Urgent"})
        assert res.status_code == 401

    def test_unparseable_body_rejected_before_guard(self, client):
        # JSON decoding happens while the request is read, ahead of any dependency.
        res = client.post("/tasks", content="{not json", headers={"Content-Type": "application/json"})
        assert res.status_code == 400
        assert res.json()["error"] == "ValidationError"


class TestTasksCRUD:
    def test_scenario_register_create_complete_list(self, client):
        reg = client.post("/auth/register", json={"email": "alice@x.com", "password": "secret1"})
        assert reg.status_code == 201
        token = reg.json()["token"]
        assert token

        res_create = client.post("/tasks", json={"title": "A", "priority": "High"}, headers=auth_headers(token))
        assert res_create.status_code == 201
        created = res_create.json()
        assert created["success"] is True
        assert created["message"] == "Task created successfully"
        task = created["task"]
        assert_task_shape(task)
        assert task["status"] == "Pending"
        assert task["description"] == ""
        assert task["userId"] == reg.json()["userId"]

        res_complete = client.patch(f"/tasks/{task['_id']}/complete", headers=auth_headers(token))
        assert res_complete.status_code == 200
        assert res_complete.json()["message"] == "Task marked as completed"
        assert res_complete.json()["task"]["status"] == "Completed"

        res_list = client.get("/tasks", headers=auth_headers(token))
        assert res_list.status_code == 200
        listing = res_list.json()
        assert listing["success"] is True
        assert listing["count"] == 1
        assert len(listing["tasks"]) == 1
        assert listing["tasks"][0]["status"] == "Completed"

    def test_create_ignores_client_status_and_owner(self, client, alice, bob):
        task = create_task(
            client,
            alice["token"],
            title="Sneaky",
            priority="Low",
            status="Completed",
            userId=bob["userId"],
            _id="forced-id",
        )
        assert task["status"] == "Pending"
        assert task["userId"] == alice["userId"]
        assert task["_id"] != "forced-id"

    def test_create_trims_title_and_keeps_description(self, client, alice):
        task = create_task(client, alice["token"], title="  Write report  ", priority="Medium", description="Q3")
        assert task["title"] == "Write report"
        assert task["description"] == "Q3"

    def test_create_rejects_bad_priority(self, client, alice):
        res = client.post(
            "/tasks", json={"title": "A", "priority": "Urgent"}, headers=auth_headers(alice["token"])
        )
        assert res.status_code == 400
        body = res.json()
        assert body["error"] == "ValidationError"
        assert body["message"] == "Priority must be High, Medium, or Low"

    def test_create_rejects_lowercase_priority(self, client, alice):
        res = client.post(
            "/tasks", json={"title": "A", "priority": "high"}, headers=auth_headers(alice["token"])
        )
        assert res.status_code == 400

    def test_create_rejects_empty_or_missing_title(self, client, alice):
        headers = auth_headers(alice["token"])
        for payload in ({"title": "", "priority": "High"}, {"title": "   ", "priority": "High"}, {"priority": "High"}):
            res = client.post("/tasks", json=payload, headers=headers)
            assert res.status_code == 400, payload
            assert res.json()["error"] == "ValidationError"

    def test_create_requires_priority(self, client, alice):
        res = client.post("/tasks", json={"title": "A"}, headers=auth_headers(alice["token"]))
        assert res.status_code == 400

    def test_list_newest_first(self, client, alice):
        for title in ("first", "second", "third"):
            create_task(client, alice["token"], title=title)
        tasks = client.get("/tasks", headers=auth_headers(alice["token"])).json()["tasks"]
        assert [t["title"] for t in tasks] == ["third", "second", "first"]

    def test_list_filters(self, client, alice):
        token = alice["token"]
        high = create_task(client, token, title="h", priority="High")
        create_task(client, token, title="l", priority="Low")
        client.patch(f"/tasks/{high['_id']}/complete", headers=auth_headers(token))

        completed = client.get("/tasks?status=Completed", headers=auth_headers(token)).json()
        assert [t["title"] for t in completed["tasks"]] == ["h"]
        low = client.get("/tasks?priority=Low", headers=auth_headers(token)).json()
        assert [t["title"] for t in low["tasks"]] == ["l"]
        both = client.get("/tasks?priority=Low&status=Completed", headers=auth_headers(token)).json()
        assert both["count"] == 0

    def test_list_invalid_filter(self, client, alice):
        res = client.get("/tasks?status=Done", headers=auth_headers(alice["token"]))
        assert res.status_code == 400
        assert res.json()["message"] == "Status must be Pending or Completed"

    def test_update_partial(self, client, alice):
        token = alice["token"]
        task = create_task(client, token, title="Initial", priority="Low", description="keep me")

        res = client.put(f"/tasks/{task['_id']}", json={"title": "Renamed"}, headers=auth_headers(token))
        assert res.status_code == 200
        body = res.json()
        assert body["message"] == "Task updated successfully"
        updated = body["task"]
        assert updated["title"] == "Renamed"
        assert updated["description"] == "keep me"
        assert updated["priority"] == "Low"
        assert updated["status"] == "Pending"
        assert updated["createdAt"] == task["createdAt"]

    def test_update_status_is_reversible(self, client, alice):
        token = alice["token"]
        task = create_task(client, token)
        client.patch(f"/tasks/{task['_id']}/complete", headers=auth_headers(token))
        res = client.put(f"/tasks/{task['_id']}", json={"status": "Pending"}, headers=auth_headers(token))
        assert res.status_code == 200
        assert res.json()["task"]["status"] == "Pending"

    def test_update_null_description_clears_it(self, client, alice):
        token = alice["token"]
        task = create_task(client, token, description="something")
        res = client.put(f"/tasks/{task['_id']}", json={"description": None}, headers=auth_headers(token))
        assert res.json()["task"]["description"] == ""

    def test_update_rejects_bad_values(self, client, alice):
        token = alice["token"]
        task = create_task(client, token)
        url = f"/tasks/{task['_id']}"
        for payload in ({"priority": "Urgent"}, {"status": "Done"}, {"title": ""}, {"title": None}):
            res = client.put(url, json=payload, headers=auth_headers(token))
            assert res.status_code == 400, payload
        # nothing was applied
        current = client.get("/tasks", headers=auth_headers(token)).json()["tasks"][0]
        assert current["title"] == task["title"]
        assert current["priority"] == task["priority"]
        assert current["status"] == "Pending"

    def test_update_unknown_task(self, client, alice):
        res = client.put("/tasks/does-not-exist", json={"title": "x"}, headers=auth_headers(alice["token"]))
        assert res.status_code == 404
        body = res.json()
        assert body["error"] == "NotFoundOrForbidden"
        assert body["message"] == "Task not found"

    def test_delete(self, client, alice):
        token = alice["token"]
        task = create_task(client, token)

        res = client.delete(f"/tasks/{task['_id']}", headers=auth_headers(token))
        assert res.status_code == 200
        assert res.json() == {"success": True, "message": "Task deleted successfully"}

        assert client.get("/tasks", headers=auth_headers(token)).json()["count"] == 0
        again = client.delete(f"/tasks/{task['_id']}", headers=auth_headers(token))
        assert again.status_code == 404

    def test_complete_is_idempotent(self, client, alice):
        token = alice["token"]
        task = create_task(client, token)
        first = client.patch(f"/tasks/{task['_id']}/complete", headers=auth_headers(token))
        second = client.patch(f"/tasks/{task['_id']}/complete", headers=auth_headers(token))
        assert first.status_code == second.status_code == 200
        assert first.json()["task"]["status"] == "Completed"
        assert second.json()["task"]["status"] == "Completed"

    def test_complete_unknown_task(self, client, alice):
        res = client.patch("/tasks/nope/complete", headers=auth_headers(alice["token"]))
        assert res.status_code == 404


class TestOwnership:
    def test_list_only_returns_own_tasks(self, client, alice, bob):
        create_task(client, alice["token"], title="alice-1")
        create_task(client, alice["token"], title="alice-2")
        create_task(client, bob["token"], title="bob-1")

        alice_tasks = client.get("/tasks", headers=auth_headers(alice["token"])).json()["tasks"]
        bob_tasks = client.get("/tasks", headers=auth_headers(bob["token"])).json()["tasks"]
        assert {t["title"] for t in alice_tasks} == {"alice-1", "alice-2"}
        assert all(t["userId"] == alice["userId"] for t in alice_tasks)
        assert [t["title"] for t in bob_tasks] == ["bob-1"]

    def test_other_user_cannot_update(self, client, alice, bob):
        task = create_task(client, alice["token"], title="private")
        res = client.put(f"/tasks/{task['_id']}", json={"title": "hijacked"}, headers=auth_headers(bob["token"]))
        assert res.status_code == 404
        assert res.json()["error"] == "NotFoundOrForbidden"

        mine = client.get("/tasks", headers=auth_headers(alice["token"])).json()["tasks"]
        assert mine[0]["title"] == "private"

    def test_other_user_cannot_delete_or_complete(self, client, alice, bob):
        task = create_task(client, alice["token"])
        bob_headers = auth_headers(bob["token"])
        assert client.delete(f"/tasks/{task['_id']}", headers=bob_headers).status_code == 404
        assert client.patch(f"/tasks/{task['_id']}/complete", headers=bob_headers).status_code == 404

        mine = client.get("/tasks", headers=auth_headers(alice["token"])).json()["tasks"]
        assert len(mine) == 1
        assert mine[0]["status"] == "Pending"

    def test_not_owned_is_indistinguishable_from_missing(self, client, alice, bob):
        task = create_task(client, alice["token"])
        bob_headers = auth_headers(bob["token"])
        foreign = client.put(f"/tasks/{task['_id']}", json={"title": "x"}, headers=bob_headers)
        missing = client.put("/tasks/ffffffffffffffffffffffff", json={"title": "x"}, headers=bob_headers)
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json()


class TestErrorHandling:
    def test_unexpected_failure_is_generic_500(self):
        class BrokenTasks(InMemoryTaskRepository):
            def list(self, owner_id, query=None):
                raise RuntimeError("store unavailable")

        app = create_app(TEST_SETTINGS, users=InMemoryUserRepository(), tasks=BrokenTasks())
        client = TestClient(app, raise_server_exceptions=False)
        token = register(client, "zoe@x.com", "secret1")["token"]

        res = client.get("/tasks", headers=auth_headers(token))
        assert res.status_code == 500
        assert res.json() == {
            "success": False,
            "error": "InternalServerError",
            "message": "Internal server error",
        }

    def test_non_object_body(self, client, alice):
        res = client.post("/tasks", json=["A", "High"], headers=auth_headers(alice["token"]))
        assert res.status_code == 400
        assert res.json()["success"] is False

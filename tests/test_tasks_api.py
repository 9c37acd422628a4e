import json
from datetime import datetime, timedelta, timezone

from taskboard.models.task import Task

from tests.base import ApiTestCase


class TasksApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.owner = self.create_user("owner")
        self.bob = self.create_user("bob")
        self.outsider = self.create_user("outsider")
        self.team = self.create_team(self.owner)
        self.add_member(self.team, self.bob)

    def _url(self, suffix=""):
        return f"/api/teams/{self.team.id}/tasks{suffix}"

    def _create(self, actor=None, **payload):
        payload.setdefault("title", "Ship it")
        return self.client.post(self._url(), json=payload, headers=self.auth_headers(actor or self.owner))

    def test_create_defaults(self):
        response = self._create(title="  Draft plan ", labels={"area": "ops"})
        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["title"], "Draft plan")
        self.assertEqual(data["status"], "TODO")
        self.assertEqual(data["priority"], "MEDIUM")
        self.assertEqual(data["position"], 0)
        self.assertEqual(data["createdBy"], str(self.owner.id))
        self.assertIsNone(data["assignee"])
        self.assertEqual(self._create().json()["data"]["position"], 1)

    def test_outsider_cannot_touch_tasks(self):
        self.assertEqual(self._create(actor=self.outsider).status_code, 403)
        listed = self.client.get(self._url(), headers=self.auth_headers(self.outsider))
        self.assertEqual(listed.status_code, 403)

    def test_list_filters_and_paginates(self):
        self._create(title="Alpha", priority="HIGH")
        self._create(title="Beta", priority="LOW")
        self._create(title="Gamma", priority="HIGH")
        response = self.client.get(
            self._url(),
            params={"filters": json.dumps({"priority": "high"}), "sort": "title:desc", "limit": 1},
            headers=self.auth_headers(self.bob),
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([item["title"] for item in body["data"]], ["Gamma"])
        self.assertEqual(body["pagination"]["totalItems"], 2)
        self.assertTrue(body["pagination"]["hasMore"])

    def test_task_outside_team_is_not_found(self):
        other_team = self.create_team(self.outsider, "Elsewhere")
        foreign = self.create_task(other_team, self.outsider, "Foreign")
        response = self.client.get(self._url(f"/{foreign.id}"), headers=self.auth_headers(self.owner))
        self.assertEqual(response.status_code, 404)
        response = self.client.delete(self._url(f"/{foreign.id}"), headers=self.auth_headers(self.owner))
        self.assertEqual(response.status_code, 404)

    def test_done_stamps_completed_at_and_reopen_clears_it(self):
        task_id = self._create().json()["data"]["id"]
        done = self.client.patch(self._url(f"/{task_id}"), json={"status": "DONE"}, headers=self.auth_headers(self.bob))
        self.assertEqual(done.status_code, 200)
        self.assertIsNotNone(done.json()["data"]["completedAt"])

        reopened = self.client.patch(
            self._url(f"/{task_id}"), json={"status": "IN_PROGRESS", "position": 7}, headers=self.auth_headers(self.bob)
        )
        data = reopened.json()["data"]
        self.assertIsNone(data["completedAt"])
        self.assertEqual(data["status"], "IN_PROGRESS")
        self.assertEqual(data["position"], 7)

    def test_update_rejects_unknown_status(self):
        task_id = self._create().json()["data"]["id"]
        response = self.client.patch(self._url(f"/{task_id}"), json={"status": "LATER"}, headers=self.auth_headers(self.owner))
        self.assertEqual(response.status_code, 400)

    def test_assign_requires_team_member(self):
        task_id = self._create().json()["data"]["id"]
        rejected = self.client.post(
            self._url(f"/{task_id}/assign"), json={"assigneeId": str(self.outsider.id)}, headers=self.auth_headers(self.owner)
        )
        self.assertEqual(rejected.status_code, 400)

        assigned = self.client.post(
            self._url(f"/{task_id}/assign"), json={"assigneeId": str(self.bob.id)}, headers=self.auth_headers(self.owner)
        )
        self.assertEqual(assigned.status_code, 200)
        self.assertEqual(assigned.json()["data"]["assignee"]["username"], "bob")

        mine = self.client.get(
            self._url(),
            params={"filters": json.dumps({"assignee": {"is": {"username": "BOB"}}})},
            headers=self.auth_headers(self.bob),
        )
        self.assertEqual([item["id"] for item in mine.json()["data"]], [task_id])

    def test_delete(self):
        task_id = self._create().json()["data"]["id"]
        response = self.client.delete(self._url(f"/{task_id}"), headers=self.auth_headers(self.owner))
        self.assertEqual(response.status_code, 200)
        with self.SessionLocal() as db:
            self.assertEqual(db.query(Task).count(), 0)

    def test_board_groups_by_status_in_fixed_order(self):
        yesterday = datetime.now(timezone.utc) - timedelta(days=1)
        self.create_task(self.team, self.owner, "Second todo", status="TODO", position=2)
        self.create_task(self.team, self.owner, "First todo", status="TODO", position=1, due_date=yesterday)
        self.create_task(self.team, self.owner, "Doing", status="IN_PROGRESS", position=0)
        self.create_task(self.team, self.owner, "Shipped", status="DONE", position=0, due_date=yesterday)

        response = self.client.get(self._url("/board"), headers=self.auth_headers(self.bob))
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual([column["key"] for column in data["columns"]], ["TODO", "IN_PROGRESS", "DONE"])
        self.assertEqual([task["title"] for task in data["columns"][0]["tasks"]], ["First todo", "Second todo"])
        self.assertEqual(data["total"], 4)
        self.assertEqual(data["overdue"], 1)
        self.assertTrue(data["columns"][0]["tasks"][0]["overdue"])
        self.assertFalse(data["columns"][2]["tasks"][0]["overdue"])

        filtered = self.client.get(
            self._url("/board"),
            params={"searchKey": "todo"},
            headers=self.auth_headers(self.bob),
        )
        columns = filtered.json()["data"]["columns"]
        self.assertEqual([column["total"] for column in columns], [2, 0, 0])

    def test_board_requires_membership(self):
        response = self.client.get(self._url("/board"), headers=self.auth_headers(self.outsider))
        self.assertEqual(response.status_code, 403)

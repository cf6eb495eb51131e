"""HTTP tests for placement, notification and health endpoints."""
import pytest

pytestmark = pytest.mark.integration


class TestPlacementEndpoints:

    def test_build_a_placement(self, client):
        trainee = client.post("/api/trainees", json={"reg_no": "TP-77", "name": "Lena", "surname": "Ode"})
        supervisor = client.post("/api/supervisors", json={"staff_id": "ST-77", "name": "Ruth", "surname": "Mensah"})
        school = client.post("/api/schools", json={"name": "Hillside"})
        assert trainee.status_code == supervisor.status_code == school.status_code == 201

        response = client.post("/api/tp-assignments", json={
            "trainee_id": trainee.json()["id"],
            "supervisor_id": supervisor.json()["id"],
            "school_id": school.json()["id"],
            "start_date": "2025-01-06",
            "end_date": "2025-03-28",
        })
        assert response.status_code == 201

        roster = client.get(f"/api/supervisors/{supervisor.json()['id']}/trainees").json()
        assert [t["reg_no"] for t in roster] == ["TP-77"]
        assert roster[0]["lesson_plan_count"] == 0

    def test_duplicate_reg_no(self, client, trainee):
        response = client.post("/api/trainees", json={"reg_no": trainee.reg_no, "name": "X", "surname": "Y"})
        assert response.status_code == 409

    def test_assignment_dates_validated(self, client, trainee, supervisor):
        response = client.post("/api/tp-assignments", json={
            "trainee_id": trainee.id,
            "supervisor_id": supervisor.id,
            "start_date": "2025-03-28",
            "end_date": "2025-01-06",
        })
        assert response.status_code == 400
        assert "end_date" in response.json()["detail"]["errors"]

    def test_roster_of_unknown_supervisor(self, client):
        assert client.get("/api/supervisors/nobody/trainees").status_code == 404


class TestNotificationEndpoints:

    def test_review_notification_lifecycle(self, client, assignment, make_plan):
        plan = make_plan()
        client.put(
            f"/api/supervisors/supervisor-1/lesson-plans/{plan.id}/review",
            json={"status": "REJECTED", "comments": "Add assessment"},
        )

        base = "/api/users/trainee-1/notifications"
        listing = client.get(base).json()
        assert listing["total_count"] == 1
        note = listing["notifications"][0]
        assert note["message"] == "Your lesson plan has been rejected"
        assert client.get(f"{base}/unread-count").json() == {"unread_count": 1}

        response = client.put(f"{base}/{note['id']}", json={"read_status": True})
        assert response.status_code == 200
        assert response.json()["read_status"] is True
        assert client.get(f"{base}/unread-count").json() == {"unread_count": 0}

        assert client.delete(f"{base}/{note['id']}").status_code == 200
        assert client.delete(f"{base}/{note['id']}").status_code == 404


@pytest.mark.smoke
class TestHealthEndpoints:

    def test_root(self, client):
        data = client.get("/").json()
        assert data["status"] == "ok"
        assert data["version"] == "1.0.0"

    def test_database_health(self, client, mocker):
        manager = mocker.Mock()
        manager.health_check.return_value = True
        mocker.patch("shared.api.health.get_db_manager", return_value=manager)

        assert client.get("/health/db").json() == {"status": "ok", "database": "connected"}

    def test_database_unhealthy(self, client, mocker):
        manager = mocker.Mock()
        manager.health_check.return_value = False
        mocker.patch("shared.api.health.get_db_manager", return_value=manager)

        assert client.get("/health/db").json()["status"] == "error"

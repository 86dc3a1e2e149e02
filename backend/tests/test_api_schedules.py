from app.models import Teacher
from app.services.cancellation import run_registry


def generate(client, school_year_id, **extra):
    return client.post(
        "/api/schedules/generate",
        json={"school_year_id": school_year_id, "semester": "1st", **extra},
    )


def test_generate_returns_entries_in_wire_shape(client, seeded_school):
    response = generate(client, seeded_school["school_year_id"], run_id="run-1", random_seed=7)

    assert response.status_code == 200
    payload = response.json()
    assert payload["run_id"] == "run-1"
    assert payload["saved_count"] == 12
    assert payload["failures"] == []
    assert payload["cancelled"] is False
    assert payload["message"] == "Successfully generated and saved 12 schedule entries."
    assert payload["stats"]["per_day"] == {"FRIDAY": 1, "MONDAY": 1}

    entry = payload["created"][0]
    assert entry["teacher"] == {"id": seeded_school["teacher_id"], "firstName": "Ada", "lastName": "Reyes"}
    assert entry["classroom"]["roomName"] == "Room 101"
    assert entry["section"] == {"id": seeded_school["section_id"], "sectionName": "7-A"}
    assert entry["dayOfWeek"] in {"MONDAY", "FRIDAY"}
    assert entry["totalSessions"] == 2
    assert entry["schoolYearId"] == seeded_school["school_year_id"]
    assert entry["status"] == "scheduled"
    assert entry["notes"].startswith("Auto-generated schedule for 7-A - Math")


def test_second_generation_for_same_scope_conflicts(client, seeded_school):
    assert generate(client, seeded_school["school_year_id"]).status_code == 200

    response = generate(client, seeded_school["school_year_id"])

    assert response.status_code == 409
    body = response.json()
    assert body["details"]["existing_count"] == 12
    assert "already exist" in body["message"]


def test_generation_with_an_active_run_id_conflicts(client, seeded_school):
    token = run_registry.register("busy")

    response = generate(client, seeded_school["school_year_id"], run_id="busy")

    assert response.status_code == 409
    assert response.json()["message"] == "Run busy is already active"
    assert run_registry.active_runs() == ["busy"]
    assert not token.cancelled
    assert client.get("/api/schedules/", params={"school_year_id": seeded_school["school_year_id"]}).json() == []


def test_generation_skips_malformed_rows(client, db_session, seeded_school):
    db_session.add(
        Teacher(
            first_name="Bad",
            last_name="Row",
            subjects=["Art"],
            available_days=["MONDAY"],
            available_start_time="15:00",
            available_end_time="09:00",
        )
    )
    db_session.commit()

    response = generate(client, seeded_school["school_year_id"])

    assert response.status_code == 200
    assert response.json()["saved_count"] == 12


def test_unknown_school_year_is_rejected(client, seeded_school):
    response = generate(client, "not-a-year")
    assert response.status_code == 400
    assert response.json()["message"] == "Selected school year does not exist"


def test_list_and_delete_schedules(client, seeded_school):
    school_year_id = seeded_school["school_year_id"]
    generate(client, school_year_id)

    listed = client.get("/api/schedules/", params={"school_year_id": school_year_id, "semester": "1st"})
    assert listed.status_code == 200
    assert len(listed.json()) == 12

    other = client.get("/api/schedules/", params={"school_year_id": school_year_id, "semester": "2nd"})
    assert other.json() == []

    deleted = client.delete("/api/schedules/", params={"school_year_id": school_year_id})
    assert deleted.status_code == 200
    assert deleted.json() == {
        "school_year_id": school_year_id,
        "deleted_count": 12,
        "failed_count": 0,
        "cancelled": False,
    }
    assert client.get("/api/schedules/", params={"school_year_id": school_year_id}).json() == []


def test_cancel_unknown_run_returns_404(client):
    response = client.post("/api/schedules/runs/nope/cancel")
    assert response.status_code == 404
    assert response.json()["message"] == "Generation run with id nope not found"


def test_school_years_are_listed(client, seeded_school):
    response = client.get("/api/school-years/")
    assert response.status_code == 200
    [school_year] = response.json()
    assert school_year["id"] == seeded_school["school_year_id"]
    assert school_year["name"] == "2026-2027"


def test_oversized_request_rejected(client):
    response = client.post(
        "/api/schedules/generate",
        content=b"x" * 1_000_001,
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 413

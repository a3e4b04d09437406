from collections import Counter

SIX_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def three_subject_class(seed_class, class_name="10A", hours=16):
    return seed_class(
        class_name,
        [
            ("Mathematics", hours, ["Anita Rao"]),
            ("Physics", hours, ["Brian Cole"]),
            ("English", hours, ["Dana Okafor"]),
        ],
        rooms=("R-101", "R-102"),
    )


def subject_counts(timetable):
    return Counter(slot["subject"] for slots in timetable.values() for slot in slots)


def test_generate_fills_exact_capacity(client, seed_class):
    three_subject_class(seed_class)

    response = client.post("/api/timetable/generate", json={"class_name": "10A", "seed": 42})
    assert response.status_code == 200
    body = response.json()

    assert body["working_days"] == SIX_DAYS
    assert body["periods_per_day"] == 8
    assert body["seed"] == 42
    assert body["conflicts"] == []
    assert body["stats"] == {"total_slots": 48, "filled_slots": 48, "subjects_scheduled": 3, "utilization": 100}
    assert body["quotas"] == {"English": 16, "Mathematics": 16, "Physics": 16}
    assert subject_counts(body["timetable"]) == {"English": 16, "Mathematics": 16, "Physics": 16}

    monday = body["timetable"]["Monday"]
    assert [slot["period"] for slot in monday] == list(range(1, 9))
    assert (monday[0]["start_time"], monday[0]["end_time"]) == ("08:00", "08:50")
    assert monday[0]["room"] == "R-101"


def test_generate_scales_down_overflowing_demand(client, seed_class):
    seed_class(
        "10A",
        [
            ("Mathematics", 16, ["Anita Rao"]),
            ("Physics", 16, ["Brian Cole"]),
            ("English", 16, ["Dana Okafor"]),
            ("Chemistry", 16, ["Chen Wei"]),
        ],
    )

    body = client.post("/api/timetable/generate", json={"class_name": "10A", "seed": 1}).json()

    assert body["stats"]["filled_slots"] == 48
    assert body["stats"]["subjects_scheduled"] == 4
    assert body["conflicts"] == []
    assert sum(body["quotas"].values()) == 48
    assert body["timetable"]["Monday"][0]["room"] == "Classroom 10A"


def test_generate_reports_unfilled_slots(client, seed_class):
    seed_class("10A", [("Mathematics", 3, ["Anita Rao"])])

    body = client.post(
        "/api/timetable/generate",
        json={"class_name": "10A", "working_days": ["monday"], "periods_per_day": 4},
    ).json()

    assert body["stats"]["filled_slots"] == 3
    assert body["conflicts"] == ["Monday Period 4: No valid assignment found"]
    assert body["stats"]["utilization"] == 75


def test_same_seed_reproduces_timetable(client, seed_class):
    three_subject_class(seed_class)
    first = client.post("/api/timetable/generate", json={"class_name": "10A", "seed": 7}).json()
    second = client.post("/api/timetable/generate", json={"class_name": "10A", "seed": 7}).json()
    assert first["timetable"] == second["timetable"]


def test_generate_without_subjects_is_not_found(client):
    response = client.post("/api/timetable/generate", json={"class_name": "12C"})
    assert response.status_code == 404
    assert response.json()["message"] == "No subjects found for class 12C"


def test_generate_rejects_blank_class(client):
    response = client.post("/api/timetable/generate", json={"class_name": "   "})
    assert response.status_code == 400
    assert response.json()["message"] == "class_name is required"


def test_generate_rejects_unknown_day(client):
    response = client.post("/api/timetable/generate", json={"class_name": "10A", "working_days": ["Funday"]})
    assert response.status_code == 422


def test_school_header_is_required(client, seed_class):
    three_subject_class(seed_class)
    response = client.post("/api/timetable/generate", json={"class_name": "10A"}, headers={"X-School-Id": ""})
    assert response.status_code == 400


def test_catalog_is_scoped_per_school(client, seed_class):
    three_subject_class(seed_class)
    response = client.post("/api/timetable/generate", json={"class_name": "10A"}, headers={"X-School-Id": "school-2"})
    assert response.status_code == 404


def test_save_replaces_and_is_idempotent(client, seed_class):
    three_subject_class(seed_class)
    generated = client.post("/api/timetable/generate", json={"class_name": "10A", "seed": 3}).json()
    payload = {"class_name": "10A", "timetable": generated["timetable"]}

    for _ in range(2):
        response = client.put("/api/timetable/generate", json=payload)
        assert response.status_code == 200
        assert response.json() == {"message": "Timetable saved", "count": 48}

    listed = client.get("/api/timetable/entries/", params={"class": "10A"}).json()
    assert len(listed["data"]) == 48
    assert listed["classes"] == ["10A"]

    smaller = {"class_name": "10A", "timetable": {"Monday": generated["timetable"]["Monday"][:2]}}
    assert client.put("/api/timetable/generate", json=smaller).json()["count"] == 2
    assert len(client.get("/api/timetable/entries/", params={"class": "10A"}).json()["data"]) == 2


def test_save_rejects_duplicate_periods(client):
    slot = {"period": 1, "subject": "Mathematics"}
    response = client.put(
        "/api/timetable/generate",
        json={"class_name": "10A", "timetable": {"Monday": [slot, slot]}},
    )
    assert response.status_code == 422


def shared_teacher_setup(client, seed_class):
    teacher_ids = seed_class("10A", [("Mathematics", 2, ["Anita Rao"])])
    seed_class("10B", [("Mathematics", 2, ["Anita Rao"])])
    anita = teacher_ids["Anita Rao"]
    saved = client.put(
        "/api/timetable/generate",
        json={
            "class_name": "10A",
            "timetable": {
                "Monday": [
                    {"period": 1, "subject": "Mathematics", "teacher": "Anita Rao", "teacher_id": anita},
                    {"period": 2, "subject": "Mathematics", "teacher": "Anita Rao", "teacher_id": anita},
                ]
            },
        },
    )
    assert saved.status_code == 200
    return anita


def test_save_rejects_cross_class_double_booking(client, seed_class):
    anita = shared_teacher_setup(client, seed_class)

    generated = client.post(
        "/api/timetable/generate",
        json={"class_name": "10B", "working_days": ["Monday"], "periods_per_day": 2},
    ).json()
    assert {slot["teacher_id"] for slot in generated["timetable"]["Monday"]} == {anita}

    response = client.put("/api/timetable/generate", json={"class_name": "10B", "timetable": generated["timetable"]})
    assert response.status_code == 409
    conflicts = response.json()["details"]["conflicts"]
    assert {conflict["dimension"] for conflict in conflicts} == {"teacher_slot"}
    assert {conflict["existing_class"] for conflict in conflicts} == {"10A"}


def test_strict_generation_leaves_busy_teacher_unassigned(client, seed_class):
    shared_teacher_setup(client, seed_class)

    generated = client.post(
        "/api/timetable/generate",
        json={"class_name": "10B", "working_days": ["Monday"], "periods_per_day": 2, "strict_cross_class": True},
    ).json()

    assert generated["strict_cross_class"] is True
    monday = generated["timetable"]["Monday"]
    assert [(slot["teacher"], slot["teacher_id"]) for slot in monday] == [("TBA", None), ("TBA", None)]

    response = client.put("/api/timetable/generate", json={"class_name": "10B", "timetable": generated["timetable"]})
    assert response.status_code == 200
    assert response.json()["count"] == 2


def test_strict_generation_respects_name_only_and_differently_cased_bookings(client, seed_class):
    seed_class("10B", [("Mathematics", 1, ["Anita Rao"])], rooms=("R-101",))
    stored = client.post(
        "/api/timetable/entries/",
        json={
            "class_name": "10A",
            "day": "Monday",
            "period": 1,
            "subject": "Mathematics",
            "teacher_name": "anita rao",
            "room": "r-101",
        },
    )
    assert stored.status_code == 201

    generated = client.post(
        "/api/timetable/generate",
        json={"class_name": "10B", "working_days": ["Monday"], "periods_per_day": 1, "strict_cross_class": True},
    ).json()

    slot = generated["timetable"]["Monday"][0]
    assert (slot["teacher"], slot["teacher_id"]) == ("TBA", None)
    assert slot["room"] == "Classroom 10B"

    saved = client.put("/api/timetable/generate", json={"class_name": "10B", "timetable": generated["timetable"]})
    assert saved.status_code == 200


def test_generate_rejects_duplicate_subject_names(client, seed_class):
    seed_class("10A", [("Mathematics", 4, ["Anita Rao"])])
    seed_class("10A", [("Mathematics", 2, ["Brian Cole"])])

    response = client.post("/api/timetable/generate", json={"class_name": "10A"})
    assert response.status_code == 409
    assert response.json()["details"]["subjects"] == ["Mathematics"]

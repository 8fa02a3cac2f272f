"""
Test the timetable API with self-contained test data.
"""
from fastapi.testclient import TestClient
from main import app


client = TestClient(app)


# Test data fixtures
def get_minimal_request():
    """Return minimal valid generation request."""
    return {
        "name": "Term 1 Draft",
        "batch_ids": ["b1"],
        "teachers": [
            {
                "teacher_id": "t1",
                "name": "John Doe",
                "subjects": ["math"],
                "max_periods_per_day": 6,
                "max_periods_per_week": 30
            }
        ],
        "subjects": [
            {"subject_id": "math", "name": "Mathematics", "code": "MATH101"}
        ],
        "classrooms": [
            {"classroom_id": "r1", "name": "Room 101", "capacity": 40, "type": "lecture"}
        ],
        "batches": [
            {"batch_id": "b1", "name": "Year 1 A", "student_count": 30, "subject_periods": {"math": 4}}
        ]
    }


def get_medium_request():
    """Return medium-sized generation request with multiple entities."""
    return {
        "name": "Week Plan",
        "batch_ids": ["b1", "b2"],
        "teachers": [
            {
                "teacher_id": "t1",
                "name": "Alice Smith",
                "subjects": ["math", "phy"],
                "max_periods_per_day": 4,
                "unavailable_slots": [{"day": 1, "period": 1}, {"day": 1, "period": 2}],
                "preferred_slots": [{"day": 2, "period": 1}]
            },
            {
                "teacher_id": "t2",
                "name": "Bob Johnson",
                "subjects": ["phy-LAB", "eng"],
                "max_periods_per_week": 20
            }
        ],
        "subjects": [
            {"subject_id": "math", "name": "Mathematics"},
            {"subject_id": "phy", "name": "Physics"},
            {"subject_id": "phy-LAB", "name": "Physics Lab"},
            {"subject_id": "eng", "name": "English"}
        ],
        "classrooms": [
            {"classroom_id": "r1", "name": "Room 101", "capacity": 40, "type": "lecture"},
            {
                "classroom_id": "lab1",
                "name": "Lab A",
                "capacity": 30,
                "type": "lab",
                "unavailable_slots": [{"day": 6, "period": 6}]
            }
        ],
        "batches": [
            {"batch_id": "b1", "name": "Year 1 A", "student_count": 28,
             "subject_periods": {"math": 5, "phy": 3, "phy-LAB": 2, "eng": 3}},
            {"batch_id": "b2", "name": "Year 1 B", "student_count": 35,
             "subject_periods": {"math": 4, "eng": 4}}
        ]
    }


def test_root_endpoint():
    """Test root endpoint is accessible."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "service" in data
    assert "status" in data
    assert data["status"] == "healthy"


def test_health_endpoint():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_generate_minimal():
    """Test /api/v1/timetables/generate with minimal valid request."""
    response = client.post("/api/v1/timetables/generate", json=get_minimal_request())

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True

    data = body["data"]
    assert data["name"] == "Term 1 Draft"
    assert data["status"] == "draft"
    assert "generated_at" in data
    assert len(data["schedule"]) == 4
    for entry in data["schedule"]:
        assert entry["teacher_id"] == "t1"
        assert entry["classroom_id"] == "r1"
        assert 1 <= entry["day"] <= 6
        assert 1 <= entry["period"] <= 6

    metadata = data["metadata"]
    assert metadata["total_tasks"] == 1
    assert metadata["conflicts_resolved"] == 0
    assert set(metadata["algorithm_phases"]) == {"preprocessing", "greedy", "backtracking", "optimization"}


def test_generate_medium():
    """Test /api/v1/timetables/generate with medium-sized request."""
    request_data = get_medium_request()

    response = client.post("/api/v1/timetables/generate", json=request_data)

    assert response.status_code == 201, response.json()
    schedule = response.json()["data"]["schedule"]
    assert len(schedule) == 13 + 8

    # No resource is booked twice in the same slot
    for key in ("teacher_id", "classroom_id", "batch_id"):
        used = [(e["day"], e["period"], e[key]) for e in schedule]
        assert len(used) == len(set(used))

    # Unavailable slots are respected
    for entry in schedule:
        if entry["teacher_id"] == "t1":
            assert (entry["day"], entry["period"]) not in {(1, 1), (1, 2)}
        if entry["classroom_id"] == "lab1":
            assert (entry["day"], entry["period"]) != (6, 6)
        if entry["batch_id"] == "b2":
            assert entry["classroom_id"] == "r1"


def test_name_is_trimmed():
    request_data = get_minimal_request()
    request_data["name"] = "   Spring   "

    response = client.post("/api/v1/timetables/generate", json=request_data)

    assert response.status_code == 201
    assert response.json()["data"]["name"] == "Spring"


def test_unknown_batch_id_returns_400():
    request_data = get_minimal_request()
    request_data["batch_ids"] = ["b1", "ghost"]

    response = client.post("/api/v1/timetables/generate", json=request_data)

    assert response.status_code == 400
    data = response.json()
    assert data == {
        "success": False,
        "error": "Batch with ID ghost does not exist"
    }
    assert "details" not in data


def test_infeasible_request_returns_details():
    """Structural errors are returned together."""
    request_data = get_minimal_request()
    request_data["batches"][0]["subject_periods"] = {"math": 30, "art": 10}

    response = client.post("/api/v1/timetables/generate", json=request_data)

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "Timetable generation failed"
    assert "Subject art has no qualified teachers" in data["details"]
    assert "Batch Year 1 A requires 40 periods, which exceeds the maximum of 36" in data["details"]


def test_validation_error_format():
    """Test that validation errors return human-friendly format."""
    invalid_request = {
        "name": "x",
        "batch_ids": []
    }

    response = client.post("/api/v1/timetables/generate", json=invalid_request)

    assert response.status_code == 422
    data = response.json()
    assert "errors" in data
    assert isinstance(data["errors"], dict)
    assert data["errors"]["Name"] == ["Timetable name must be at least 2 characters"]
    assert data["errors"]["Batch IDs"] == ["Batch IDs must not be empty."]

    for field, messages in data["errors"].items():
        assert isinstance(messages, list)
        assert len(messages) > 0
        assert isinstance(messages[0], str)


def test_missing_fields_are_reported():
    response = client.post("/api/v1/timetables/generate", json={})

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors["Name"] == ["Name is required."]
    assert errors["Batch IDs"] == ["Batch IDs is required."]


def test_entity_field_validation():
    request_data = get_minimal_request()
    request_data["classrooms"][0]["type"] = "garage"
    request_data["teachers"][0]["max_periods_per_day"] = 9
    request_data["teachers"][0]["unavailable_slots"] = [{"day": 7, "period": 1}]

    response = client.post("/api/v1/timetables/generate", json=request_data)

    assert response.status_code == 422
    fields = response.json()["errors"].keys()
    assert "Classrooms -> 0 -> Type" in fields
    assert "Teachers -> 0 -> Max Periods Per Day" in fields
    assert "Teachers -> 0 -> Unavailable Slots -> 0 -> Day" in fields


def test_negative_periods_rejected():
    request_data = get_minimal_request()
    request_data["batches"][0]["subject_periods"] = {"math": -2}

    response = client.post("/api/v1/timetables/generate", json=request_data)

    assert response.status_code == 422
    messages = response.json()["errors"]["Batches -> 0 -> Subject Periods"]
    assert messages == ["Periods for subject math must not be negative"]

from conftest import error_codes, gql, login, make_user

ADD_SECTION = """
mutation AddSection($id: String!, $name: String, $adviserId: String!, $students: [UserInput!]!) {
  addSection(id: $id, name: $name, adviserId: $adviserId, students: $students) {
    id name createdBy
    adviserId { id email role }
  }
}
"""
SECTIONS = "{ sections { id name adviserId { id firstName } } }"


def _student(user_id, email=None, role=None):
    student = {
        "id": user_id,
        "firstName": "Stu",
        "lastName": "Dent",
        "email": email or f"{user_id.lower()}@school.test",
        "password": "student-pass",
    }
    if role is not None:
        student["role"] = role
    return student


def test_add_section_links_adviser_and_students(client, store, school_admin):
    login(client, "sa@school.test")
    result = gql(client, ADD_SECTION, {
        "id": "S1",
        "name": "Homeroom",
        "adviserId": "SA1",
        "students": [_student("U1", role={"type": "student"})],
    })
    assert "errors" not in result, result

    section = result["data"]["addSection"]
    assert section["id"] == "S1"
    assert section["name"] == "Homeroom"
    assert section["adviserId"]["id"] == "SA1"
    assert section["createdBy"] == school_admin["_id"]

    stored_section = store.sections.find_one({"id": "S1"})
    assert stored_section["adviserId"] == school_admin["_id"]

    student = store.users.find_one({"id": "U1"})
    assert student["role"] == {"type": "student", "sectionId": stored_section["_id"]}
    assert student["createdBy"] == school_admin["_id"]


def test_students_default_to_student_role(client, store, school_admin):
    login(client, "sa@school.test")
    result = gql(client, ADD_SECTION, {"id": "S1", "name": "A", "adviserId": "SA1", "students": [_student("U1")]})
    assert "errors" not in result, result
    assert store.users.find_one({"id": "U1"})["role"]["type"] == "student"


def test_unknown_adviser_creates_nothing(client, store, school_admin):
    login(client, "sa@school.test")
    before = store.users.count()
    result = gql(client, ADD_SECTION, {"id": "S1", "name": "A", "adviserId": "NOPE", "students": [_student("U1")]})

    assert error_codes(result) == ["ADVISER_NOT_FOUND"]
    assert store.sections.count() == 0
    assert store.users.count() == before


def test_non_student_in_roster_is_rejected_before_any_write(client, store, school_admin):
    login(client, "sa@school.test")
    result = gql(client, ADD_SECTION, {
        "id": "S1",
        "name": "A",
        "adviserId": "SA1",
        "students": [_student("U1"), _student("U2", role={"type": "teacher"})],
    })
    assert error_codes(result) == ["VALIDATION_ERROR"]
    assert store.sections.count() == 0
    assert store.users.find_one({"id": "U1"}) is None


def test_student_failure_removes_section_and_created_students(client, store, school_admin):
    login(client, "sa@school.test")
    result = gql(client, ADD_SECTION, {
        "id": "S1",
        "name": "A",
        "adviserId": "SA1",
        "students": [_student("U1"), _student("U2", email="sa@school.test")],
    })
    assert error_codes(result) == ["DUPLICATE_KEY"]
    assert store.sections.count() == 0
    assert store.users.find_one({"id": "U1"}) is None
    # the section id can be reused after the rollback
    retry = gql(client, ADD_SECTION, {"id": "S1", "name": "A", "adviserId": "SA1", "students": [_student("U1")]})
    assert "errors" not in retry, retry


def test_add_section_requires_manager(client, store, teacher):
    login(client, "teacher@school.test")
    result = gql(client, ADD_SECTION, {"id": "S1", "name": "A", "adviserId": "T1", "students": []})
    assert error_codes(result) == ["UNAUTHORIZED"]
    assert store.sections.count() == 0


def test_sections_join_adviser(client, store, admin, teacher):
    login(client, "admin@school.test")
    gql(client, ADD_SECTION, {"id": "S1", "name": "Seven-A", "adviserId": "T1", "students": []})
    gql(client, ADD_SECTION, {"id": "S2", "name": "Seven-B", "adviserId": "A0", "students": []})

    login(client, "teacher@school.test")
    result = gql(client, SECTIONS)
    assert "errors" not in result, result
    assert result["data"]["sections"] == [
        {"id": "S1", "name": "Seven-A", "adviserId": {"id": "T1", "firstName": "T1"}},
        {"id": "S2", "name": "Seven-B", "adviserId": {"id": "A0", "firstName": "A0"}},
    ]


def test_students_cannot_read_sections(client, store, admin):
    make_user(store, "ST1", "student", created_by=admin["_id"])
    login(client, "st1@school.test")
    assert error_codes(gql(client, SECTIONS)) == ["UNAUTHORIZED"]


def test_sections_survive_deleted_adviser(client, store, admin, teacher):
    login(client, "admin@school.test")
    gql(client, ADD_SECTION, {"id": "S1", "name": "Seven-A", "adviserId": "T1", "students": []})
    gql(client, "mutation { deleteUsers }")

    result = gql(client, SECTIONS)
    assert "errors" not in result, result
    assert result["data"]["sections"] == [{"id": "S1", "name": "Seven-A", "adviserId": None}]

import uuid

import pytest

DEADLINE = "2030-01-01T00:00:00Z"
TODOS_URL = "/api/v1/todos"


def create_todo(client, headers, **fields) -> dict:
    body = {"todo": "Write report", "deadline": DEADLINE, "sequence": 1, **fields}
    response = client.post(f"{TODOS_URL}/new", json=body, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]


def sub_todo_body(text: str = "Outline", sequence: int = 1) -> dict:
    return {"todo": text, "deadline": DEADLINE, "sequence": sequence}


def test_todo_routes_require_a_token(client):
    assert client.get(TODOS_URL, params={"perPage": 10, "page": 1}).status_code == 403
    assert client.post(f"{TODOS_URL}/new", json={}).status_code == 403


def test_create_todo(client, auth_headers):
    data = create_todo(client, auth_headers, subTodos=[sub_todo_body()])

    assert data["status"] == "NOT_STARTED"
    assert data["completed_at"] is None
    assert data["sequence"] == 1
    assert len(data["subTodos"]) == 1
    assert data["subTodos"][0]["status"] == "NOT_STARTED"


def test_create_todo_validation_error(client, auth_headers):
    response = client.post(
        f"{TODOS_URL}/new", json={"todo": "No deadline"}, headers=auth_headers
    )
    assert response.status_code == 400
    body = response.json()
    assert body["status"] is False
    assert "'deadline' is required." in body["message"]


def test_get_todo(client, auth_headers):
    created = create_todo(client, auth_headers)

    response = client.get(f"{TODOS_URL}/get/{created['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == created


def test_get_todo_with_malformed_id(client, auth_headers):
    response = client.get(f"{TODOS_URL}/get/not-a-uuid", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["status"] is False


def test_get_unknown_todo(client, auth_headers):
    response = client.get(f"{TODOS_URL}/get/{uuid.uuid4()}", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Couldn't find a todo with this id."


def test_todos_of_other_users_are_not_found(client, auth_headers, other_auth_headers):
    created = create_todo(client, auth_headers)

    response = client.get(f"{TODOS_URL}/get/{created['id']}", headers=other_auth_headers)
    assert response.status_code == 404

    response = client.delete(
        f"{TODOS_URL}/delete/{created['id']}", headers=other_auth_headers
    )
    assert response.status_code == 404


def test_list_todos_pagination(client, auth_headers):
    for sequence in range(25):
        create_todo(client, auth_headers, sequence=sequence)

    response = client.get(
        TODOS_URL, params={"perPage": 10, "page": 2}, headers=auth_headers
    )
    assert response.status_code == 200
    page = response.json()["data"]
    assert len(page["items"]) == 10
    assert page["currentPage"] == 2
    assert page["perPage"] == 10
    assert page["totalCount"] == 25
    assert page["pageCount"] == 3
    assert page["isLastPage"] is False

    response = client.get(
        TODOS_URL, params={"perPage": 10, "page": 3}, headers=auth_headers
    )
    page = response.json()["data"]
    assert len(page["items"]) == 5
    assert page["isLastPage"] is True


def test_list_todos_only_returns_own_todos(client, auth_headers, other_auth_headers):
    create_todo(client, auth_headers)
    create_todo(client, other_auth_headers)

    response = client.get(
        TODOS_URL, params={"perPage": 10, "page": 1}, headers=auth_headers
    )
    assert response.json()["data"]["totalCount"] == 1


def test_list_todos_sorting(client, auth_headers):
    for sequence in (3, 1, 2):
        create_todo(client, auth_headers, sequence=sequence)

    response = client.get(
        TODOS_URL,
        params={"perPage": 10, "page": 1, "sequence": "desc"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert [item["sequence"] for item in response.json()["data"]["items"]] == [3, 2, 1]

    response = client.get(
        TODOS_URL,
        params={"perPage": 10, "page": 1, "created_at": "desc"},
        headers=auth_headers,
    )
    assert [item["sequence"] for item in response.json()["data"]["items"]] == [2, 1, 3]


def test_list_todos_rejects_invalid_sort_direction(client, auth_headers):
    response = client.get(
        TODOS_URL,
        params={"perPage": 10, "page": 1, "created_at": "sideways"},
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.parametrize(
    "params", [{"page": 1}, {"perPage": 10}, {"perPage": "ten", "page": 1}]
)
def test_list_todos_requires_valid_page_parameters(client, auth_headers, params):
    response = client.get(TODOS_URL, params=params, headers=auth_headers)
    assert response.status_code == 400


def test_update_todo_merges_fields(client, auth_headers):
    created = create_todo(client, auth_headers, subTodos=[sub_todo_body()])

    response = client.put(
        f"{TODOS_URL}/update/{created['id']}",
        json={"todo": "Write the final report", "sequence": None},
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["todo"] == "Write the final report"
    for field in ("id", "author", "created_at", "deadline", "sequence", "status", "subTodos"):
        assert updated[field] == created[field]


def test_update_todo_to_completed(client, auth_headers):
    created = create_todo(client, auth_headers)

    response = client.put(
        f"{TODOS_URL}/update/{created['id']}",
        json={"status": "COMPLETED"},
        headers=auth_headers,
    )

    updated = response.json()["data"]
    assert updated["status"] == "COMPLETED"
    assert updated["completed_at"] is not None


def test_update_todo_requires_a_recognized_field(client, auth_headers):
    created = create_todo(client, auth_headers)

    response = client.put(
        f"{TODOS_URL}/update/{created['id']}",
        json={"author": "someone"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Please fill in at least one field to update "
        "(todo, sequence, status, subTodos, deadline)."
    )


def test_update_todo_rejects_unknown_status(client, auth_headers):
    created = create_todo(client, auth_headers)

    response = client.put(
        f"{TODOS_URL}/update/{created['id']}",
        json={"status": "DONE"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Status can only be one of the following: "
        "NOT_STARTED, IN_PROGRESS, COMPLETED, CANCELED."
    )


def test_sub_todo_lifecycle(client, auth_headers):
    created = create_todo(client, auth_headers)

    response = client.post(
        f"{TODOS_URL}/new-sub-todo/{created['id']}",
        json=sub_todo_body("Outline"),
        headers=auth_headers,
    )
    assert response.status_code == 200
    parent = response.json()["data"]
    sub_todo_id = parent["subTodos"][0]["id"]

    response = client.get(
        f"{TODOS_URL}/get-sub-todo/{created['id']}/{sub_todo_id}", headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["todo"] == "Outline"

    response = client.patch(
        f"{TODOS_URL}/update-sub-todo/{created['id']}/{sub_todo_id}",
        json={"todo": "Detailed outline"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["todo"] == "Detailed outline"

    response = client.delete(
        f"{TODOS_URL}/delete-sub-todo/{created['id']}/{sub_todo_id}",
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["id"] == sub_todo_id

    response = client.get(
        f"{TODOS_URL}/get-sub-todo/{created['id']}/{sub_todo_id}", headers=auth_headers
    )
    assert response.status_code == 404


def test_sub_todo_progress_moves_parent_in_progress(client, auth_headers):
    created = create_todo(client, auth_headers, subTodos=[sub_todo_body()])
    sub_todo_id = created["subTodos"][0]["id"]

    response = client.put(
        f"{TODOS_URL}/update-sub-todo/{created['id']}/{sub_todo_id}",
        json={"status": "IN_PROGRESS"},
        headers=auth_headers,
    )
    assert response.status_code == 200

    parent = client.get(f"{TODOS_URL}/get/{created['id']}", headers=auth_headers)
    assert parent.json()["data"]["status"] == "IN_PROGRESS"


def test_sub_todo_of_canceled_todo_cannot_be_updated(client, auth_headers):
    created = create_todo(
        client, auth_headers, status="CANCELED", subTodos=[sub_todo_body()]
    )
    sub_todo_id = created["subTodos"][0]["id"]

    response = client.put(
        f"{TODOS_URL}/update-sub-todo/{created['id']}/{sub_todo_id}",
        json={"status": "COMPLETED"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "You can't update a subTodo for a canceled todo."
    parent = client.get(f"{TODOS_URL}/get/{created['id']}", headers=auth_headers)
    assert parent.json()["data"] == created


def test_sub_todos_of_canceled_todo_cannot_be_changed_through_update(
    client, auth_headers
):
    created = create_todo(
        client, auth_headers, status="CANCELED", subTodos=[sub_todo_body()]
    )
    entry = {**created["subTodos"][0], "status": "COMPLETED"}

    response = client.put(
        f"{TODOS_URL}/update/{created['id']}",
        json={"subTodos": [entry]},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "You can't update a subTodo for a canceled todo."
    parent = client.get(f"{TODOS_URL}/get/{created['id']}", headers=auth_headers)
    assert parent.json()["data"] == created


def test_update_rejects_repeated_sub_todo_ids(client, auth_headers):
    created = create_todo(client, auth_headers, subTodos=[sub_todo_body()])
    entry = created["subTodos"][0]

    response = client.put(
        f"{TODOS_URL}/update/{created['id']}",
        json={"subTodos": [entry, {**entry, "todo": "Copy"}]},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Each subTodo id can only appear once in subTodos."
    )


def test_sub_todo_with_malformed_id(client, auth_headers):
    created = create_todo(client, auth_headers)
    response = client.get(
        f"{TODOS_URL}/get-sub-todo/{created['id']}/nope", headers=auth_headers
    )
    assert response.status_code == 400


def test_deleting_a_todo_removes_its_sub_todos(client, auth_headers):
    created = create_todo(client, auth_headers, subTodos=[sub_todo_body()])
    sub_todo_id = created["subTodos"][0]["id"]

    response = client.delete(f"{TODOS_URL}/delete/{created['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["id"] == created["id"]

    response = client.get(
        f"{TODOS_URL}/get-sub-todo/{created['id']}/{sub_todo_id}", headers=auth_headers
    )
    assert response.status_code == 404


def test_delete_all_todos(client, auth_headers):
    for sequence in range(3):
        create_todo(client, auth_headers, sequence=sequence)

    response = client.delete(f"{TODOS_URL}/delete-all", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"deletedCount": 3}


def test_statistics(client, auth_headers):
    first = create_todo(client, auth_headers, sequence=1)
    create_todo(client, auth_headers, sequence=2)
    client.put(
        f"{TODOS_URL}/update/{first['id']}",
        json={"status": "COMPLETED"},
        headers=auth_headers,
    )

    response = client.get(f"{TODOS_URL}/statistics", headers=auth_headers)

    assert response.status_code == 200
    statistics = response.json()["data"]
    assert statistics["totalTodos"] == 2
    assert statistics["completedTodos"] == 1
    assert statistics["completionRate"] == "50.00"
    assert statistics["daysSinceSignUp"] == 0
    assert statistics["averageCompletionRate"] == 0
    assert statistics["lastCompletedTodo"]["id"] == first["id"]

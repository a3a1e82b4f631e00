from exceptions import StorageError

BOARD = "test_board"
THREADS = f"/api/threads/{BOARD}"
REPLIES = f"/api/replies/{BOARD}"


def test_create_thread(client):
    response = client.post(THREADS, data={"text": "test test", "delete_password": "123abc"})

    assert response.status_code == 201
    thread = response.json()
    assert {"_id", "board", "text", "created_on", "bumped_on", "reported", "replies"} <= set(thread)
    assert "delete_password" not in thread
    assert thread["board"] == BOARD
    assert thread["text"] == "test test"
    assert thread["reported"] is False
    assert thread["replies"] == []


def test_create_thread_accepts_json(client):
    response = client.post(THREADS, json={"text": "from json", "delete_password": "pw"})

    assert response.status_code == 201
    assert response.json()["text"] == "from json"


def test_create_thread_missing_field(client):
    response = client.post(THREADS, data={"text": "no password"})

    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields in request body"


def test_list_threads(client, new_thread, new_reply):
    threads = [new_thread(text=f"t{i}") for i in range(11)]
    for i in range(4):
        new_reply(threads[3]["_id"], text=f"r{i}")

    response = client.get(THREADS)

    assert response.status_code == 200
    listing = response.json()
    assert len(listing) == 10
    assert listing[0]["_id"] == threads[3]["_id"]
    assert [reply["text"] for reply in listing[0]["replies"]] == ["r3", "r2", "r1"]
    assert set(listing[0]["replies"][0]) == {"_id", "text", "created_on"}
    assert "reported" not in listing[0]
    assert "delete_password" not in listing[0]
    bumps = [thread["bumped_on"] for thread in listing]
    assert bumps == sorted(bumps, reverse=True)


def test_report_thread(client, new_thread):
    thread = new_thread()

    response = client.put(THREADS, data={"report_id": thread["_id"]})

    assert response.status_code == 200
    assert response.text == "reported"
    fetched = client.get(REPLIES, params={"thread_id": thread["_id"]}).json()
    assert fetched["reported"] is True


def test_report_unknown_thread(client):
    response = client.put(THREADS, data={"report_id": 999})

    assert response.status_code == 200
    assert response.text == "thread not found"


def test_report_thread_requires_report_id(client):
    response = client.put(THREADS, data={})

    assert response.status_code == 400


def test_delete_thread_with_incorrect_password(client, new_thread):
    thread = new_thread(password="123abc")

    response = client.request("DELETE", THREADS, data={"thread_id": thread["_id"], "delete_password": "wrongpassword"})

    assert response.status_code == 200
    assert response.text == "incorrect password"
    assert client.get(REPLIES, params={"thread_id": thread["_id"]}).json()["_id"] == thread["_id"]


def test_delete_thread_with_correct_password(client, new_thread, new_reply):
    thread = new_thread(password="123abc")
    new_reply(thread["_id"])

    response = client.request("DELETE", THREADS, data={"thread_id": thread["_id"], "delete_password": "123abc"})

    assert response.text == "success"
    assert client.get(REPLIES, params={"thread_id": thread["_id"]}).json() == {}


def test_delete_thread_missing_fields(client, new_thread):
    thread = new_thread()

    response = client.request("DELETE", THREADS, data={"thread_id": thread["_id"]})

    assert response.status_code == 400
    assert response.json() == {
        "error": "MissingFieldError",
        "message": "Missing required fields in request body",
        "details": None,
    }


def test_delete_thread_invalid_id(client):
    response = client.request("DELETE", THREADS, data={"thread_id": "abc", "delete_password": "pw"})

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidFieldError"


def test_create_reply(client, new_thread):
    thread = new_thread()

    response = client.post(REPLIES, data={"thread_id": thread["_id"], "text": "a reply", "delete_password": "pw"})

    assert response.status_code == 200
    reply = response.json()
    assert reply["thread_id"] == thread["_id"]
    assert reply["text"] == "a reply"
    assert reply["reported"] is False
    assert "delete_password" not in reply

    fetched = client.get(REPLIES, params={"thread_id": thread["_id"]}).json()
    assert fetched["bumped_on"] == reply["created_on"]


def test_create_reply_on_missing_thread(client):
    response = client.post(REPLIES, data={"thread_id": 999, "text": "a reply", "delete_password": "pw"})

    assert response.status_code == 200
    assert response.text == "thread not found"


def test_get_replies(client, new_thread, new_reply):
    thread = new_thread()
    replies = [new_reply(thread["_id"], text=f"r{i}") for i in range(5)]

    response = client.get(REPLIES, params={"thread_id": thread["_id"]})

    assert response.status_code == 200
    body = response.json()
    assert body["_id"] == thread["_id"]
    assert len(body["replies"]) == 5
    assert [reply["_id"] for reply in body["replies"]] == [reply["_id"] for reply in reversed(replies)]


def test_get_replies_unknown_thread(client):
    response = client.get(REPLIES, params={"thread_id": 999})

    assert response.status_code == 200
    assert response.json() == {}


def test_get_replies_requires_thread_id(client):
    response = client.get(REPLIES)

    assert response.status_code == 400
    assert response.json()["message"] == "missing thread_id"


def test_report_reply(client, new_thread, new_reply):
    thread = new_thread()
    reply = new_reply(thread["_id"])

    response = client.put(REPLIES, data={"thread_id": thread["_id"], "reply_id": reply["_id"]})

    assert response.text == "reported"
    fetched = client.get(REPLIES, params={"thread_id": thread["_id"]}).json()
    assert fetched["replies"][0]["reported"] is True


def test_report_unknown_reply(client, new_thread):
    thread = new_thread()

    response = client.put(REPLIES, data={"thread_id": thread["_id"], "reply_id": 999})

    assert response.text == "reply not found"


def test_delete_reply(client, new_thread, new_reply):
    thread = new_thread()
    reply = new_reply(thread["_id"], password="reply-pw")

    wrong = client.request("DELETE", REPLIES, data={
        "thread_id": thread["_id"], "reply_id": reply["_id"], "delete_password": "nope"
    })
    right = client.request("DELETE", REPLIES, data={
        "thread_id": thread["_id"], "reply_id": reply["_id"], "delete_password": "reply-pw"
    })

    assert wrong.text == "incorrect password"
    assert right.text == "success"
    fetched = client.get(REPLIES, params={"thread_id": thread["_id"]}).json()
    assert fetched["replies"][0]["_id"] == reply["_id"]
    assert fetched["replies"][0]["text"] == "[deleted]"


def test_storage_failure_is_500(client, monkeypatch):
    async def broken(board):
        raise StorageError("disk I/O error")

    monkeypatch.setattr(client.app.state.boards, "get_threads", broken)

    response = client.get(THREADS)

    assert response.status_code == 500
    assert response.json()["error"] == "StorageError"


def test_security_headers(client):
    response = client.get(THREADS)

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "Content-Security-Policy" in response.headers


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["tables"] == ["threads_test", "replies_test"]


def test_create_thread_rejects_non_string_text(client):
    response = client.post(THREADS, json={"text": {"a": 1}, "delete_password": "pw"})

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidFieldError"
    assert response.json()["message"] == "Invalid value for field 'text'"


def test_create_thread_rejects_numeric_password(client):
    response = client.post(THREADS, json={"text": "t", "delete_password": 123})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid value for field 'delete_password'"


def test_create_reply_rejects_uploaded_file(client, new_thread):
    thread = new_thread()

    response = client.post(
        REPLIES,
        data={"thread_id": str(thread["_id"]), "delete_password": "pw"},
        files={"text": ("reply.txt", b"file contents", "text/plain")}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidFieldError"


def test_empty_password_thread_round_trip(client):
    thread = client.post(THREADS, json={"text": "t", "delete_password": ""}).json()

    response = client.request("DELETE", THREADS, json={"thread_id": thread["_id"], "delete_password": ""})

    assert response.text == "success"


def test_unknown_route_uses_error_body(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json() == {"error": "HTTPException", "message": "Not Found", "details": None}


def test_wrong_method_uses_error_body(client):
    response = client.request("PATCH", THREADS)

    assert response.status_code == 405
    assert response.json()["error"] == "HTTPException"

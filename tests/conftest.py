import asyncio
import pytest
from fastapi.testclient import TestClient
from app import create_app
from boards import BoardService
from database import DatabaseManager, TableNames
from security import PasswordHasher

BOARD = "test_board"

# Lowest cost bcrypt accepts; keeps hashing fast under test.
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "board.db")


@pytest.fixture
def db(db_path):
    """Initialized storage on the isolated _test tables."""
    manager = DatabaseManager(db_path, TableNames.with_suffix("_test"))
    asyncio.run(manager.initialize())
    return manager


@pytest.fixture
def service(db):
    return BoardService(db, PasswordHasher(rounds=TEST_BCRYPT_ROUNDS))


@pytest.fixture
def client(db_path):
    app = create_app(db_path=db_path, table_suffix="_test", bcrypt_rounds=TEST_BCRYPT_ROUNDS)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def new_thread(client):
    """Create a thread over HTTP and return its JSON body."""
    def _create(text="thread text", password="secret", board=BOARD):
        response = client.post(f"/api/threads/{board}", data={"text": text, "delete_password": password})
        assert response.status_code == 201
        return response.json()

    return _create


@pytest.fixture
def new_reply(client):
    def _create(thread_id, text="reply text", password="reply-secret", board=BOARD):
        response = client.post(
            f"/api/replies/{board}",
            data={"thread_id": thread_id, "text": text, "delete_password": password}
        )
        assert response.status_code == 200
        return response.json()

    return _create

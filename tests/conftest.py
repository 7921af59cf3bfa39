import sqlite3

import pytest
from fastapi.testclient import TestClient

from database.connection import Database
from main import create_app


def make_descriptor(length: int = 128) -> list:
    """Build a descriptor-shaped list of floats"""
    return [round(i / 128, 6) for i in range(length)]


def run_sql(db_path, sql: str, params=()):
    """Write raw rows straight into the SQLite file behind the app"""
    conn = sqlite3.connect(str(db_path))
    try:
        if params and isinstance(params[0], (list, tuple)):
            conn.executemany(sql, params)
        else:
            conn.execute(sql, params)
        conn.commit()
    finally:
        conn.close()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "checkin.db"


@pytest.fixture
def database(db_path):
    return Database(f"sqlite+aiosqlite:///{db_path}")


@pytest.fixture
def client(database):
    """Test client over a fresh SQLite database; tables are created on startup"""
    app = create_app(database)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def user_payload():
    return {
        "id": "EMP001",
        "name": "Nguyen Van A",
        "rank": "Captain",
        "idCard": "001099012345",
        "phone": "0912345678",
        "unit": "Unit 7",
        "photo": "data:image/jpeg;base64,/9j/4AAQSkZJRg==",
        "descriptor": make_descriptor(),
    }

import fbadapter
import pytest


@pytest.fixture
def sqlite_path(tmp_path):
    """Path of a not yet existing SQLite database file"""
    return str(tmp_path / 'adapter.db')


@pytest.fixture
def sqlite_db(sqlite_path):
    """Open a file-based SQLite database for testing"""
    db = fbadapter.open_database(sqlite_path, drivername='sqlite')
    yield db
    db.close_database()


@pytest.fixture
def sqlite_people(sqlite_db):
    """SQLite database with a populated `people` table"""
    sqlite_db.create_table('people', ['id', 'name', 'score'],
                           ['INTEGER', 'TEXT', 'DOUBLE PRECISION'])
    sqlite_db.insert_rows('people', ['id', 'name', 'score'], [
        (1, 'Alice', 10.5),
        (2, 'Bob', 20.0),
        (3, 'Charlie', 30.25),
        ])
    return sqlite_db

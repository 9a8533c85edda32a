import csv
import io
import os
import pathlib
import typing

import pandas as pd
import pytest

# Keep the app's default engine off the developer's real database.
os.environ.setdefault("PFMS_DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from pfms.auth import get_current_user_id  # noqa: E402
from pfms.database import get_db, init_db, make_engine  # noqa: E402
from pfms.main import app  # noqa: E402
from pfms.services import workbook_reader  # noqa: E402

USER_ID = 7

HEADERS = [
    "Account Name",
    "Category",
    "Mode",
    "Currency",
    "Amount",
    "Transaction Date",
    "Description",
]


@pytest.fixture
def engine(tmp_path: pathlib.Path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def upload_dir(tmp_path: pathlib.Path, monkeypatch) -> pathlib.Path:
    """Stage uploads in a directory the test can inspect."""
    directory = tmp_path / "uploads"
    monkeypatch.setattr(workbook_reader, "UPLOAD_DIR", str(directory))
    return directory


@pytest.fixture
def client(session_factory, upload_dir):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_xlsx() -> typing.Callable[..., bytes]:
    def _make_xlsx(rows: list, columns: typing.Optional[list] = None) -> bytes:
        buffer = io.BytesIO()
        df = pd.DataFrame(rows, columns=columns)
        df.to_excel(buffer, index=False, engine="openpyxl")
        return buffer.getvalue()

    return _make_xlsx


@pytest.fixture
def make_csv() -> typing.Callable[..., bytes]:
    def _make_csv(rows: list, headers: list = HEADERS) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(headers)
        writer.writerows(rows)
        return buffer.getvalue().encode("utf-8")

    return _make_csv

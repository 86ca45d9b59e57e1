import pytest

from app import create_app
from models import ClassModel, StudentModel, db
from store import StudentStore


class FakeGateway:
    """Stands in for GeminiClient: records requests and replays canned replies."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def app(gateway):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "AI_TIMEOUT_SECONDS": 5,
        },
        gateway=gateway,
    )
    yield app
    app.extensions["extraction_tasks"].shutdown()
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    with app.app_context():
        yield StudentStore(db.session)


@pytest.fixture
def seeded(store):
    """One class with two students, plus an orphan pointing at a missing class."""
    pe = ClassModel(name="PE 6B")
    db.session.add(pe)
    db.session.commit()
    alice = StudentModel(name="Alice Smith", class_id=pe.id, note1=12, note2=15, note3=18)
    bob = StudentModel(name="Bob Jones", class_id=pe.id, note1=10, note2=10, note3=10)
    orphan = StudentModel(name="Carla Diaz", class_id=999, note1=0, note2=0, note3=0)
    db.session.add_all([alice, bob, orphan])
    db.session.commit()
    return {"class_id": pe.id, "alice": alice.id, "bob": bob.id, "orphan": orphan.id}

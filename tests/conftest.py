import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["TESTING"] = "true"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.constants import ExamTypeEnum, QuestionTypeEnum
from app.core.database import Base
from app.crud.exam import exam as crud_exam
from app.crud.question import question as crud_question
from app.services.attempt_store import AttemptStore
from app.services.identity import StaticIdentity, create_access_token
from app.services.question_bank import QuestionBank
from app.services.session_manager import ExamSessionManager
from app.utils import deps as deps_utils
import main
from tests.helpers.fakes import FakeClock

test_db_url = settings.TEST_DATABASE_URL or "sqlite:///./test.db"

STUDENT_ID = "student-1"
OTHER_STUDENT_ID = "student-2"

SAMPLE_QUESTIONS = [
    {
        "question_type": QuestionTypeEnum.MULTIPLE_CHOICE,
        "question_text": "What fraction of the shape is shaded?",
        "options": ["1/2", "1/3", "1/4", "2/3"],
        "correct_answer": "A",
        "points": 1,
        "explanation": "Two of the four equal parts are shaded, which is one half.",
    },
    {
        "question_type": QuestionTypeEnum.MULTIPLE_CHOICE,
        "question_text": "How many minutes are in 2 hours?",
        "options": ["60", "100", "120", "200"],
        "correct_answer": "C",
        "points": 1,
        "hint": "There are 60 minutes in one hour.",
    },
    {
        "question_type": QuestionTypeEnum.MULTIPLE_CHOICE,
        "question_text": "Which number is the largest?",
        "options": ["0.5", "0.45", "0.405", "0.054"],
        "correct_answer": "A",
        "points": 1,
    },
    {
        "question_type": QuestionTypeEnum.SHORT_ANSWER,
        "question_text": "Write the total of 15 and 27.",
        "correct_answer": "42",
        "points": 2,
    },
]

@pytest.fixture(scope="session")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(test_db_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
    if test_db_url.startswith("sqlite") and os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="function")
def session_factory(database_engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    yield factory
    with factory() as db:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()

@pytest.fixture(scope="function")
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def question_bank(session_factory):
    return QuestionBank(session_factory)

@pytest.fixture
def attempt_store(session_factory):
    return AttemptStore(session_factory)

@pytest.fixture
def student():
    return StaticIdentity(STUDENT_ID)

@pytest.fixture
def exam_factory(db_session):
    def _create(questions=SAMPLE_QUESTIONS, **overrides):
        exam_data = {
            "title": "NAPLAN Year 5 Numeracy Practice",
            "subject": "Mathematics",
            "year_level": 5,
            "exam_type": ExamTypeEnum.NAPLAN,
            "duration_minutes": 30,
            "total_questions": len(questions),
            "is_free": True,
            "is_active": True,
        }
        exam_data.update(overrides)
        db_exam = crud_exam.create(db_session, obj_in=exam_data)
        for number, question in enumerate(questions, start=1):
            crud_question.create(db_session, obj_in={
                **question, "exam_id": db_exam.id, "question_number": number
            })
        return db_exam.id
    return _create

@pytest.fixture
def sample_exam_id(exam_factory):
    return exam_factory()

@pytest.fixture
def manager(session_factory, clock):
    return ExamSessionManager(session_factory=session_factory, scheduler=None, now_fn=clock)

@pytest.fixture(scope="function")
def client(manager):
    main.app.state.session_manager = manager
    main.app.dependency_overrides[deps_utils.get_session_manager] = lambda: manager
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()
    main.app.state.session_manager = None

@pytest.fixture
def token_for():
    def _token(user_id: str) -> str:
        return create_access_token(user_id)
    return _token

@pytest.fixture
def auth_headers(token_for):
    return {"Authorization": f"Bearer {token_for(STUDENT_ID)}"}

@pytest.fixture
def other_headers(token_for):
    return {"Authorization": f"Bearer {token_for(OTHER_STUDENT_ID)}"}

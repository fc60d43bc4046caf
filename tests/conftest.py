"""
Hostel Room Manager - test configuration and fixtures
"""
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment before the app modules read it
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['SEED_DEMO_DATA'] = 'false'

from main import app
from database import Base, get_db
from user_models import User
from auth import hash_password, create_access_token
from hostel_client import HostelApiClient
from admin_session import AdminSession
from room_manager import RoomManager
from seed import seed_demo_data
import hostel_storage as storage

test_engine = create_engine(
    'sqlite://',
    connect_args={'check_same_thread': False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope='function')
def db_session():
    """Fresh in-memory database for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db_session):
    """Test client with the database dependency overridden"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db_session, username, hostel_name, role='admin'):
    user = User(
        username=username,
        email=f'{username}@hostel.test',
        hashed_password=hash_password('wardenpass123'),
        role=role,
        hostel_name=hostel_name,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def headers_for(user):
    token = create_access_token({'sub': user.username, 'role': user.role})
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def warden(db_session):
    """Warden of the boys' hostel"""
    return make_user(db_session, 'varahmihir_warden', 'Varahmihir')


@pytest.fixture
def other_warden(db_session):
    """Warden of the girls' hostel"""
    return make_user(db_session, 'maitreyi_warden', 'Maitreyi')


@pytest.fixture
def superadmin(db_session):
    return make_user(db_session, 'chief', 'Varahmihir', role='superadmin')


@pytest.fixture
def auth_headers(warden):
    return headers_for(warden)


@pytest.fixture
def other_auth_headers(other_warden):
    return headers_for(other_warden)


@pytest.fixture
def superadmin_headers(superadmin):
    return headers_for(superadmin)


@pytest.fixture
def seeded(db_session):
    """Demo rooms for both hostels plus the demo students"""
    seed_demo_data(db_session)
    return db_session


@pytest.fixture
def small_hostel(db_session):
    """Varahmihir with two ground floor rooms and three male students"""
    rooms = [
        storage.create_room(db_session, 'Varahmihir', '001', 0, beds=3),
        storage.create_room(db_session, 'Varahmihir', '002', 0, beds=1),
    ]
    students = [
        storage.create_student(db_session, full_name='Rahul Sharma', year_of_study='1st', course='B.Tech',
                               branch='CSE', institute_name='IIST', mobile_no='+91 9876543210',
                               email_id='rahul.s@example.com', gender='M'),
        storage.create_student(db_session, full_name='Amit Kumar', year_of_study='2nd', course='B.Tech',
                               branch='ECE', institute_name='IIP', mobile_no='+91 9876543211',
                               email_id='amit.k@example.com', gender='M'),
        storage.create_student(db_session, full_name='Vijay Singh', year_of_study='1st', course='BBA',
                               branch='Management', institute_name='IIMR', mobile_no='+91 9876543212',
                               email_id='vijay.s@example.com', gender='M'),
    ]
    return {
        'rooms': rooms,
        'beds': [bed.id for bed in rooms[0].beds] + [bed.id for bed in rooms[1].beds],
        'room_ids': [room.id for room in rooms],
        'students': [student.id for student in students],
    }


@pytest.fixture
def session(client, warden):
    return AdminSession.login(HostelApiClient(http=client), warden.username, 'wardenpass123')


@pytest.fixture
def manager(session, small_hostel):
    room_manager = RoomManager(session)
    room_manager.refresh()
    return room_manager

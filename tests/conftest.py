import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_SECRET", "test-auth-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from auth import SESSION_COOKIE, AuthConfig, create_session_token, hash_password
from db import get_session
from main import create_app
from models import Customer, Invoice, User


class RecordingViews:
  """Stands in for the view cache and records every invalidation."""

  def __init__(self):
    self.invalidated = []

  def invalidate(self, path):
    self.invalidated.append(path)


@pytest.fixture
def engine():
  engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
  )
  SQLModel.metadata.create_all(engine)
  yield engine
  engine.dispose()


@pytest.fixture
def session(engine):
  with Session(engine) as session:
    yield session


@pytest.fixture
def views():
  return RecordingViews()


@pytest.fixture
def user(session):
  user = User(name="User", email="user@nextmail.com", password=hash_password("123456"))
  session.add(user)
  session.commit()
  session.refresh(user)
  return user


@pytest.fixture
def customers(session):
  rows = [
    Customer(id="c1", name="Lee Robinson", email="lee@robinson.com", image_url="/customers/lee-robinson.png"),
    Customer(id="c2", name="Steph Dietz", email="steph@dietz.com", image_url="/customers/steph-dietz.png"),
  ]
  session.add_all(rows)
  session.commit()
  return rows


@pytest.fixture
def invoice(session, customers):
  row = Invoice(id="inv-1", customer_id="c1", amount=1500, status="pending", date="2023-01-02")
  session.add(row)
  session.commit()
  return row


@pytest.fixture
def auth_config():
  return AuthConfig(secret="test-auth-secret", session_minutes=5)


@pytest.fixture
def app(session, auth_config):
  app = create_app(auth_config)
  app.dependency_overrides[get_session] = lambda: session
  yield app
  app.dependency_overrides.clear()


@pytest.fixture
def client(app):
  return TestClient(app)


@pytest.fixture
def auth_client(client, auth_config, user):
  client.cookies.set(SESSION_COOKIE, create_session_token(auth_config, user))
  return client

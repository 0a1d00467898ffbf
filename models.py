# models.py
from uuid import uuid4
from sqlmodel import SQLModel, Field

def _new_id() -> str:
  return str(uuid4())

class User(SQLModel, table=True):
  id: str = Field(default_factory=_new_id, primary_key=True)
  name: str
  email: str = Field(unique=True, index=True)
  password: str  # bcrypt hash

class Customer(SQLModel, table=True):
  id: str = Field(default_factory=_new_id, primary_key=True)
  name: str = Field(index=True)
  email: str
  image_url: str = ""

class Invoice(SQLModel, table=True):
  id: str = Field(default_factory=_new_id, primary_key=True)
  customer_id: str = Field(foreign_key="customer.id", index=True)
  amount: int  # cents
  status: str  # pending|paid
  date: str  # YYYY-MM-DD, stamped at creation

class Revenue(SQLModel, table=True):
  month: str = Field(primary_key=True)  # Jan, Feb, ...
  revenue: int

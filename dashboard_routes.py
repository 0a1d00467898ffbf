# dashboard_routes.py
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlmodel import Session, select

from actions import DELETE_FAILED, INVOICES_PATH, authenticate, create_invoice, delete_invoice, revalidate_path, update_invoice
from auth import SESSION_COOKIE, AuthConfig, authorized, get_auth_config, hash_password
from cache import Redirect, ViewCache
from data import (
  fetch_card_data,
  fetch_customers,
  fetch_filtered_customers,
  fetch_filtered_invoices,
  fetch_invoice_by_id,
  fetch_invoices_pages,
  fetch_latest_invoices,
  fetch_revenue,
)
from db import get_session
from models import Customer, Invoice, Revenue, User
from schemas import State
from utils import generate_pagination

router = APIRouter(tags=["dashboard"])

def get_view_cache(request: Request) -> ViewCache:
  return request.app.state.view_cache

def _cache_key(request: Request) -> str:
  query = request.url.query
  return request.url.path + (f"?{query}" if query else "")

def _follow(signal: Redirect, config: Optional[AuthConfig] = None) -> RedirectResponse:
  response = RedirectResponse(signal.path, status_code=303)
  max_age = config.session_minutes * 60 if config else None
  for name, value in signal.cookies.items():
    response.set_cookie(name, value, max_age=max_age, httponly=True, samesite="lax")
  return response

def _state_response(state: State) -> JSONResponse:
  status_code = 422 if state.errors else 500
  return JSONResponse(state.model_dump(exclude_none=True), status_code=status_code)

@router.post("/login")
def login(
  email: Optional[str] = Form(None),
  password: Optional[str] = Form(None),
  session: Session = Depends(get_session),
  config: AuthConfig = Depends(get_auth_config),
):
  try:
    message = authenticate(config, session, {"email": email, "password": password})
  except Redirect as signal:
    return _follow(signal, config)
  return JSONResponse({"message": message}, status_code=401)

@router.post("/logout")
def logout(config: AuthConfig = Depends(get_auth_config)):
  response = RedirectResponse(config.sign_in_page, status_code=303)
  response.delete_cookie(SESSION_COOKIE)
  return response

@router.get("/dashboard/overview")
def overview(session: Session = Depends(get_session), user: dict = Depends(authorized)):
  return {
    "cards": fetch_card_data(session),
    "latest_invoices": fetch_latest_invoices(session),
    "revenue": fetch_revenue(session),
  }

@router.get("/dashboard/invoices")
def list_invoices(
  request: Request,
  query: str = "",
  page: int = Query(1, ge=1),
  session: Session = Depends(get_session),
  views: ViewCache = Depends(get_view_cache),
  user: dict = Depends(authorized),
):
  key = _cache_key(request)
  cached = views.get(key)
  if cached is not None:
    return cached

  total_pages = fetch_invoices_pages(session, query)
  payload = {
    "invoices": fetch_filtered_invoices(session, query, page),
    "total_pages": total_pages,
    "pagination": generate_pagination(page, total_pages),
  }
  views.set(key, payload)
  return payload

@router.post("/dashboard/invoices")
def create_invoice_route(
  customerId: Optional[str] = Form(None),
  amount: Optional[str] = Form(None),
  status: Optional[str] = Form(None),
  session: Session = Depends(get_session),
  views: ViewCache = Depends(get_view_cache),
  user: dict = Depends(authorized),
):
  form = {"customerId": customerId, "amount": amount, "status": status}
  try:
    state = create_invoice(session, views, form)
  except Redirect as signal:
    return _follow(signal)
  return _state_response(state)

@router.get("/dashboard/invoices/{invoice_id}")
def edit_invoice(invoice_id: str, session: Session = Depends(get_session), user: dict = Depends(authorized)):
  invoice = fetch_invoice_by_id(session, invoice_id)
  if not invoice:
    raise HTTPException(status_code=404, detail="Invoice not found")
  return {"invoice": invoice, "customers": fetch_customers(session)}

@router.post("/dashboard/invoices/{invoice_id}")
def update_invoice_route(
  invoice_id: str,
  customerId: Optional[str] = Form(None),
  amount: Optional[str] = Form(None),
  status: Optional[str] = Form(None),
  session: Session = Depends(get_session),
  views: ViewCache = Depends(get_view_cache),
  user: dict = Depends(authorized),
):
  form = {"customerId": customerId, "amount": amount, "status": status}
  try:
    state = update_invoice(session, views, invoice_id, form)
  except Redirect as signal:
    return _follow(signal)
  return _state_response(state)

@router.delete("/dashboard/invoices/{invoice_id}")
def delete_invoice_route(
  invoice_id: str,
  session: Session = Depends(get_session),
  views: ViewCache = Depends(get_view_cache),
  user: dict = Depends(authorized),
):
  state = delete_invoice(session, views, invoice_id)
  if state.message == DELETE_FAILED:
    return _state_response(state)
  return state.model_dump(exclude_none=True)

@router.get("/dashboard/customers")
def list_customers(query: str = "", session: Session = Depends(get_session), user: dict = Depends(authorized)):
  return {"customers": fetch_filtered_customers(session, query)}

@router.post("/seed")
def seed_if_empty(session: Session = Depends(get_session), views: ViewCache = Depends(get_view_cache)):
  # Seed only if DB is empty
  any_user = session.exec(select(User)).first()
  if any_user:
    return {"ok": True, "seeded": False}

  session.add(User(name="User", email="user@nextmail.com", password=hash_password("123456")))

  customers = [
    Customer(name="Delba de Oliveira", email="delba@oliveira.com", image_url="/customers/delba-de-oliveira.png"),
    Customer(name="Lee Robinson", email="lee@robinson.com", image_url="/customers/lee-robinson.png"),
    Customer(name="Hector Simpson", email="hector@simpson.com", image_url="/customers/hector-simpson.png"),
    Customer(name="Steven Tey", email="steven@tey.com", image_url="/customers/steven-tey.png"),
  ]
  session.add_all(customers)

  session.add_all([
    Invoice(customer_id=customers[0].id, amount=15795, status="pending", date="2022-12-06"),
    Invoice(customer_id=customers[1].id, amount=20348, status="pending", date="2022-11-14"),
    Invoice(customer_id=customers[2].id, amount=3040, status="paid", date="2022-10-29"),
    Invoice(customer_id=customers[3].id, amount=44800, status="paid", date="2023-09-10"),
    Invoice(customer_id=customers[0].id, amount=34577, status="pending", date="2023-08-05"),
    Invoice(customer_id=customers[1].id, amount=54246, status="pending", date="2023-07-16"),
  ])

  session.add_all([
    Revenue(month=month, revenue=revenue)
    for month, revenue in [
      ("Jan", 2000), ("Feb", 1800), ("Mar", 2200), ("Apr", 2500),
      ("May", 2300), ("Jun", 3200), ("Jul", 3500), ("Aug", 3700),
      ("Sep", 2500), ("Oct", 2800), ("Nov", 3000), ("Dec", 4800),
    ]
  ])

  session.commit()
  revalidate_path(views, INVOICES_PATH)
  return {"ok": True, "seeded": True}

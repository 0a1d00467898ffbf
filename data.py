# data.py
import logging
import math
from typing import Any, Dict, List, Optional

from sqlalchemy import String, case, cast
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, func, or_, select

from models import Customer, Invoice, Revenue
from utils import format_currency

logger = logging.getLogger(__name__)

ITEMS_PER_PAGE = 6


class FetchError(RuntimeError):
  pass


def _fail(what: str) -> FetchError:
  logger.exception("Database Error: failed to fetch %s", what)
  return FetchError(f"Failed to fetch {what}.")


def _invoice_search(statement, query: str):
  pattern = f"%{query}%"
  return statement.join(Customer, col(Invoice.customer_id) == col(Customer.id)).where(
    or_(
      col(Customer.name).ilike(pattern),
      col(Customer.email).ilike(pattern),
      cast(Invoice.amount, String).ilike(pattern),
      col(Invoice.date).ilike(pattern),
      col(Invoice.status).ilike(pattern),
    )
  )


def fetch_revenue(session: Session) -> List[Dict[str, Any]]:
  try:
    rows = session.exec(select(Revenue)).all()
  except SQLAlchemyError as error:
    raise _fail("revenue data") from error
  return [{"month": r.month, "revenue": r.revenue} for r in rows]


def fetch_latest_invoices(session: Session) -> List[Dict[str, Any]]:
  statement = (
    select(Invoice, Customer)
    .join(Customer, col(Invoice.customer_id) == col(Customer.id))
    .order_by(col(Invoice.date).desc())
    .limit(5)
  )
  try:
    rows = session.exec(statement).all()
  except SQLAlchemyError as error:
    raise _fail("the latest invoices") from error
  return [
    {
      "id": inv.id,
      "name": c.name,
      "email": c.email,
      "image_url": c.image_url,
      "amount": format_currency(inv.amount),
    }
    for inv, c in rows
  ]


def fetch_card_data(session: Session) -> Dict[str, Any]:
  status_totals = select(
    func.coalesce(func.sum(case((col(Invoice.status) == "paid", Invoice.amount), else_=0)), 0),
    func.coalesce(func.sum(case((col(Invoice.status) == "pending", Invoice.amount), else_=0)), 0),
  )
  try:
    invoice_count = session.exec(select(func.count()).select_from(Invoice)).one()
    customer_count = session.exec(select(func.count()).select_from(Customer)).one()
    paid, pending = session.exec(status_totals).one()
  except SQLAlchemyError as error:
    raise _fail("card data") from error
  return {
    "number_of_invoices": int(invoice_count),
    "number_of_customers": int(customer_count),
    "total_paid_invoices": format_currency(int(paid)),
    "total_pending_invoices": format_currency(int(pending)),
  }


def fetch_filtered_invoices(session: Session, query: str, current_page: int) -> List[Dict[str, Any]]:
  offset = (max(current_page, 1) - 1) * ITEMS_PER_PAGE
  statement = (
    _invoice_search(select(Invoice, Customer), query)
    .order_by(col(Invoice.date).desc())
    .offset(offset)
    .limit(ITEMS_PER_PAGE)
  )
  try:
    rows = session.exec(statement).all()
  except SQLAlchemyError as error:
    raise _fail("invoices") from error
  return [
    {
      "id": inv.id,
      "customer_id": inv.customer_id,
      "amount": inv.amount,
      "date": inv.date,
      "status": inv.status,
      "name": c.name,
      "email": c.email,
      "image_url": c.image_url,
    }
    for inv, c in rows
  ]


def fetch_invoices_pages(session: Session, query: str) -> int:
  statement = _invoice_search(select(func.count()).select_from(Invoice), query)
  try:
    count = session.exec(statement).one()
  except SQLAlchemyError as error:
    raise _fail("total number of invoices") from error
  return math.ceil(int(count) / ITEMS_PER_PAGE)


def fetch_invoice_by_id(session: Session, invoice_id: str) -> Optional[Dict[str, Any]]:
  try:
    invoice = session.get(Invoice, invoice_id)
  except SQLAlchemyError as error:
    raise _fail("invoice") from error
  if invoice is None:
    return None
  return {
    "id": invoice.id,
    "customer_id": invoice.customer_id,
    "amount": invoice.amount / 100,
    "status": invoice.status,
    "date": invoice.date,
  }


def fetch_customers(session: Session) -> List[Dict[str, str]]:
  try:
    rows = session.exec(select(Customer).order_by(col(Customer.name))).all()
  except SQLAlchemyError as error:
    raise _fail("all customers") from error
  return [{"id": c.id, "name": c.name} for c in rows]


def fetch_filtered_customers(session: Session, query: str) -> List[Dict[str, Any]]:
  pattern = f"%{query}%"
  statement = (
    select(
      Customer.id,
      Customer.name,
      Customer.email,
      Customer.image_url,
      func.count(col(Invoice.id)),
      func.coalesce(func.sum(case((col(Invoice.status) == "pending", Invoice.amount), else_=0)), 0),
      func.coalesce(func.sum(case((col(Invoice.status) == "paid", Invoice.amount), else_=0)), 0),
    )
    .select_from(Customer)
    .outerjoin(Invoice, col(Invoice.customer_id) == col(Customer.id))
    .where(or_(col(Customer.name).ilike(pattern), col(Customer.email).ilike(pattern)))
    .group_by(Customer.id, Customer.name, Customer.email, Customer.image_url)
    .order_by(col(Customer.name))
  )
  try:
    rows = session.exec(statement).all()
  except SQLAlchemyError as error:
    raise _fail("customer table") from error
  return [
    {
      "id": cid,
      "name": name,
      "email": email,
      "image_url": image_url,
      "total_invoices": int(total),
      "total_pending": format_currency(int(pending)),
      "total_paid": format_currency(int(paid)),
    }
    for cid, name, email, image_url, total, pending, paid in rows
  ]

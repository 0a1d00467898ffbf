# actions.py
import logging
from datetime import date
from typing import Mapping, Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from auth import SESSION_COOKIE, AuthConfig, AuthError, sign_in
from cache import ViewCache, redirect
from models import Invoice
from schemas import State, validate_invoice_form

logger = logging.getLogger(__name__)

INVOICES_PATH = "/dashboard/invoices"

CREATE_FAILED = "Database Error: Failed to Create Invoice."
UPDATE_FAILED = "Database Error: Failed to Update Invoice."
DELETE_FAILED = "Database Error: Failed to Delete Invoice."


def to_cents(amount: float) -> int:
  return int(round(amount * 100))


def revalidate_path(views: ViewCache, path: str) -> None:
  # the write already succeeded; a stale view is not a failed mutation
  try:
    views.invalidate(path)
  except Exception:
    logger.warning("Failed to revalidate %s", path, exc_info=True)


def create_invoice(session: Session, views: ViewCache, form: Mapping) -> State:
  validated = validate_invoice_form(form, "create")
  if isinstance(validated, State):
    return validated

  today = date.today().isoformat()

  try:
    amount_in_cents = to_cents(validated.amount)
    session.add(Invoice(
      customer_id=validated.customer_id,
      amount=amount_in_cents,
      status=validated.status,
      date=today,
    ))
    session.commit()
  except (SQLAlchemyError, OverflowError):
    session.rollback()
    logger.exception("Failed to create invoice for customer %s", validated.customer_id)
    return State(message=CREATE_FAILED)

  revalidate_path(views, INVOICES_PATH)
  redirect(INVOICES_PATH)


def update_invoice(session: Session, views: ViewCache, invoice_id: str, form: Mapping) -> State:
  validated = validate_invoice_form(form, "update")
  if isinstance(validated, State):
    return validated

  try:
    amount_in_cents = to_cents(validated.amount)
    result = session.exec(
      update(Invoice)
      .where(Invoice.id == invoice_id)
      .values(customer_id=validated.customer_id, amount=amount_in_cents, status=validated.status)
    )
    session.commit()
  except (SQLAlchemyError, OverflowError):
    session.rollback()
    logger.exception("Failed to update invoice %s", invoice_id)
    return State(message=UPDATE_FAILED)

  if result.rowcount == 0:
    logger.warning("Update matched no invoice with id %s", invoice_id)

  revalidate_path(views, INVOICES_PATH)
  redirect(INVOICES_PATH)


def delete_invoice(session: Session, views: ViewCache, invoice_id: str) -> State:
  try:
    result = session.exec(delete(Invoice).where(Invoice.id == invoice_id))
    session.commit()
  except SQLAlchemyError:
    session.rollback()
    logger.exception("Failed to delete invoice %s", invoice_id)
    return State(message=DELETE_FAILED)

  if result.rowcount == 0:
    logger.warning("Delete matched no invoice with id %s", invoice_id)

  revalidate_path(views, INVOICES_PATH)
  return State(message="Deleted Invoice.")


def authenticate(config: AuthConfig, session: Session, form: Mapping) -> Optional[str]:
  """Sign in with the submitted email/password.

  On success this redirects to the home page with the session cookie set.
  Returns the message to show on a classified sign-in failure; anything
  else propagates.
  """
  try:
    token = sign_in(config, session, "credentials", form)
  except AuthError as error:
    logger.warning("Sign-in failed: %s", error.type)
    if error.type == "CredentialsSignin":
      return "Invalid credentials."
    return "Something went wrong."

  redirect(config.home_page, cookies={SESSION_COOKIE: token})

from datetime import date
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from actions import create_invoice, delete_invoice, to_cents, update_invoice
from schemas import MAX_AMOUNT
from cache import Redirect
from models import Invoice


def _store_down():
  return OperationalError("statement", {}, Exception("connection refused"))


def _failing_session():
  session = MagicMock(spec=Session)
  session.commit.side_effect = _store_down()
  session.exec.side_effect = _store_down()
  return session


@pytest.mark.parametrize("amount, cents", [("49.99", 4999), ("0.01", 1), ("10", 1000), ("19.999", 2000), ("1.1", 110)])
def test_to_cents(amount, cents):
  assert to_cents(float(amount)) == cents


def test_create_persists_and_redirects(session, views, customers):
  with pytest.raises(Redirect) as signal:
    create_invoice(session, views, {"customerId": "c1", "amount": "49.99", "status": "pending"})

  assert signal.value.path == "/dashboard/invoices"
  assert views.invalidated == ["/dashboard/invoices"]

  rows = session.exec(select(Invoice)).all()
  assert len(rows) == 1
  assert rows[0].customer_id == "c1"
  assert rows[0].amount == 4999
  assert rows[0].status == "pending"
  assert rows[0].date == date.today().isoformat()
  assert rows[0].id


def test_create_with_invalid_form_touches_nothing(views):
  session = MagicMock(spec=Session)
  state = create_invoice(session, views, {"customerId": "", "amount": "10", "status": "paid"})

  assert state.errors == {"customerId": ["Please select a customer."]}
  assert state.message == "Missing Fields. Failed to Create Invoice."
  assert session.method_calls == []
  assert views.invalidated == []


@pytest.mark.parametrize("amount", ["0", "-3", "", "twelve"])
def test_create_rejects_non_positive_amounts(views, amount):
  session = MagicMock(spec=Session)
  state = create_invoice(session, views, {"customerId": "c1", "amount": amount, "status": "paid"})

  assert state.errors["amount"] == ["Please enter an amount greater than $0."]
  assert session.method_calls == []


def test_create_store_failure_is_generic(views):
  session = _failing_session()
  state = create_invoice(session, views, {"customerId": "c1", "amount": "5", "status": "paid"})

  assert state.message == "Database Error: Failed to Create Invoice."
  assert state.errors is None
  assert "connection refused" not in state.model_dump_json()
  session.rollback.assert_called_once()
  assert views.invalidated == []


def test_update_overwrites_fields_but_not_date(session, views, invoice):
  with pytest.raises(Redirect) as signal:
    update_invoice(session, views, "inv-1", {"customerId": "c2", "amount": "20.5", "status": "paid"})

  assert signal.value.path == "/dashboard/invoices"
  assert views.invalidated == ["/dashboard/invoices"]

  row = session.get(Invoice, "inv-1")
  assert row.customer_id == "c2"
  assert row.amount == 2050
  assert row.status == "paid"
  assert row.date == "2023-01-02"


def test_update_with_invalid_status(session, views, invoice):
  state = update_invoice(session, views, "inv-1", {"customerId": "c1", "amount": "20", "status": "overdue"})

  assert state.errors == {"status": ["Please select an invoice status."]}
  assert state.message == "Missing Fields. Failed to Update Invoice."
  assert session.get(Invoice, "inv-1").status == "pending"
  assert views.invalidated == []


def test_update_missing_invoice_is_not_an_error(session, views, customers):
  with pytest.raises(Redirect):
    update_invoice(session, views, "nope", {"customerId": "c1", "amount": "1", "status": "paid"})
  assert session.exec(select(Invoice)).all() == []


def test_update_store_failure_is_generic(views):
  state = update_invoice(_failing_session(), views, "inv-1", {"customerId": "c1", "amount": "1", "status": "paid"})
  assert state.message == "Database Error: Failed to Update Invoice."
  assert views.invalidated == []


def test_delete_removes_row_without_redirect(session, views, invoice):
  state = delete_invoice(session, views, "inv-1")

  assert state.message == "Deleted Invoice."
  assert views.invalidated == ["/dashboard/invoices"]
  assert session.get(Invoice, "inv-1") is None


def test_delete_missing_invoice_is_a_no_op(session, views):
  state = delete_invoice(session, views, "nope")
  assert state.message == "Deleted Invoice."
  assert views.invalidated == ["/dashboard/invoices"]


def test_delete_store_failure_is_generic(views):
  state = delete_invoice(_failing_session(), views, "inv-1")
  assert state.message == "Database Error: Failed to Delete Invoice."
  assert views.invalidated == []


def test_failed_invalidation_does_not_fail_mutation(session, customers):
  views = MagicMock()
  views.invalidate.side_effect = RuntimeError("cache unavailable")

  with pytest.raises(Redirect):
    create_invoice(session, views, {"customerId": "c1", "amount": "3", "status": "paid"})
  assert len(session.exec(select(Invoice)).all()) == 1


def test_largest_amount_fits_the_column(session, views, customers):
  assert to_cents(MAX_AMOUNT) == 2**31 - 1

  with pytest.raises(Redirect):
    create_invoice(session, views, {"customerId": "c1", "amount": "21474836.47", "status": "paid"})
  assert session.exec(select(Invoice)).one().amount == 2**31 - 1


@pytest.mark.parametrize("amount", ["1e308", "1e30", "21474836.48"])
def test_oversized_amounts_fail_validation(views, amount):
  session = MagicMock(spec=Session)
  for action in (create_invoice, lambda s, v, f: update_invoice(s, v, "inv-1", f)):
    state = action(session, views, {"customerId": "c1", "amount": amount, "status": "paid"})
    assert state.errors == {"amount": ["Please enter an amount greater than $0."]}
  assert session.method_calls == []
  assert views.invalidated == []


def test_driver_overflow_is_a_store_failure(views):
  session = MagicMock(spec=Session)
  session.commit.side_effect = OverflowError("Python int too large to convert to SQLite INTEGER")
  state = create_invoice(session, views, {"customerId": "c1", "amount": "5", "status": "paid"})

  assert state.message == "Database Error: Failed to Create Invoice."
  session.rollback.assert_called_once()
  assert views.invalidated == []

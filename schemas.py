# schemas.py
import math
import re
from collections.abc import Mapping
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

InvoiceStatus = Literal["pending", "paid"]

# largest amount whose cents fit a 32-bit INTEGER column
MAX_AMOUNT = 21474836.47

DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

FIELD_MESSAGES = {
  "customerId": "Please select a customer.",
  "amount": "Please enter an amount greater than $0.",
  "status": "Please select an invoice status.",
}

FAILURE_MESSAGES = {
  "create": "Missing Fields. Failed to Create Invoice.",
  "update": "Missing Fields. Failed to Update Invoice.",
}


def _coerce_amount(value: Any) -> float:
  # empty or non-numeric input becomes 0 so the > 0 rule rejects it
  text = str(value).strip() if value is not None else ""
  if not DECIMAL_RE.match(text):
    return 0.0
  number = float(text)
  return number if math.isfinite(number) else 0.0


class CreateInvoice(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  customer_id: str = Field(alias="customerId", min_length=1)
  amount: float = Field(gt=0, le=MAX_AMOUNT)
  status: InvoiceStatus

  @field_validator("amount", mode="before")
  @classmethod
  def coerce_amount(cls, value: Any) -> float:
    return _coerce_amount(value)


class UpdateInvoice(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  customer_id: str = Field(alias="customerId", min_length=1)
  amount: float = Field(gt=0, le=MAX_AMOUNT)
  status: InvoiceStatus

  @field_validator("amount", mode="before")
  @classmethod
  def coerce_amount(cls, value: Any) -> float:
    return _coerce_amount(value)


class Credentials(BaseModel):
  email: EmailStr
  password: str = Field(min_length=6)


class State(BaseModel):
  errors: Optional[Dict[str, List[str]]] = None
  message: Optional[str] = None


SCHEMAS = {"create": CreateInvoice, "update": UpdateInvoice}


def _field_errors(error: ValidationError) -> Dict[str, List[str]]:
  errors: Dict[str, List[str]] = {}
  for item in error.errors():
    field = str(item["loc"][0]) if item["loc"] else ""
    message = FIELD_MESSAGES.get(field, item["msg"])
    messages = errors.setdefault(field, [])
    if message not in messages:
      messages.append(message)
  return errors


def validate_invoice_form(form: Mapping, operation: str) -> Union[CreateInvoice, UpdateInvoice, State]:
  """Validate a submitted invoice form for ``create`` or ``update``.

  Returns the typed record on success, or a ``State`` carrying the per-field
  errors and the operation's failure message. Bad user input never raises;
  only a non-mapping ``form`` or an unknown ``operation`` does.
  """
  if not isinstance(form, Mapping):
    raise TypeError(f"form must be a mapping, got {type(form).__name__}")
  schema = SCHEMAS.get(operation)
  if schema is None:
    raise ValueError(f"Unknown invoice operation: {operation}")

  raw = {
    "customerId": form.get("customerId"),
    "amount": form.get("amount"),
    "status": form.get("status"),
  }
  try:
    return schema.model_validate(raw)
  except ValidationError as error:
    return State(errors=_field_errors(error), message=FAILURE_MESSAGES[operation])

# utils.py
from datetime import datetime
from typing import List, Union

def format_currency(amount: int) -> str:
  # amount is in cents
  value = amount / 100
  sign = "-" if value < 0 else ""
  return f"{sign}${abs(value):,.2f}"

def format_date_to_local(date_str: str) -> str:
  d = datetime.strptime(date_str, "%Y-%m-%d")
  return f"{d:%b} {d.day}, {d.year}"

def generate_pagination(current_page: int, total_pages: int) -> List[Union[int, str]]:
  # 7 or fewer pages: show them all, otherwise elide around the current page
  if total_pages <= 7:
    return list(range(1, total_pages + 1))

  if current_page <= 3:
    return [1, 2, 3, "...", total_pages - 1, total_pages]

  if current_page >= total_pages - 2:
    return [1, 2, "...", total_pages - 2, total_pages - 1, total_pages]

  return [
    1,
    "...",
    current_page - 1,
    current_page,
    current_page + 1,
    "...",
    total_pages,
  ]

from utils import format_currency, format_date_to_local, generate_pagination


def test_format_currency():
  assert format_currency(4999) == "$49.99"
  assert format_currency(123456789) == "$1,234,567.89"
  assert format_currency(0) == "$0.00"


def test_format_date_to_local():
  assert format_date_to_local("2026-10-19") == "Oct 19, 2026"
  assert format_date_to_local("2023-01-02") == "Jan 2, 2023"


def test_pagination_shows_all_pages_when_few():
  assert generate_pagination(1, 0) == []
  assert generate_pagination(2, 7) == [1, 2, 3, 4, 5, 6, 7]


def test_pagination_near_start():
  assert generate_pagination(2, 10) == [1, 2, 3, "...", 9, 10]


def test_pagination_near_end():
  assert generate_pagination(9, 10) == [1, 2, "...", 8, 9, 10]


def test_pagination_in_middle():
  assert generate_pagination(5, 10) == [1, "...", 4, 5, 6, "...", 10]

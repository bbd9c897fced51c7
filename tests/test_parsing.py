from datetime import datetime

from smartreceipt.services.ticket_service import make_ticket_id
from smartreceipt.utils.parsing import (
    compute_subtotal,
    format_amount,
    parse_contact_info,
    parse_input_list,
    parse_price,
    parse_quick_add,
    price_to_str,
    strip_quotes,
)
from smartreceipt.utils.time_utils import add_months, month_range, parse_month


def test_input_list_splits_on_commas_and_newlines():
    assert parse_input_list("Rice, Beans\nGarri") == ["Rice", "Beans", "Garri"]
    assert parse_input_list(" , \n ") == []
    assert parse_input_list("") == []


def test_input_list_rejoins_thousands_groups():
    assert parse_input_list("30,000, 1,500") == ["30000", "1500"]
    assert parse_input_list("2500\n1,200,\n300") == ["2500", "1200", "300"]


def test_parse_price():
    assert parse_price("1,500") == 1500.0
    assert parse_price("₦2000") == 2000.0
    assert parse_price("12.50") == 12.5
    assert parse_price("free") is None
    assert parse_price("-5") is None
    assert parse_price("nan") is None


def test_price_to_str_drops_trailing_zeros():
    assert price_to_str(500.0) == "500"
    assert price_to_str(12.5) == "12.5"


def test_subtotal_ignores_bad_entries():
    assert compute_subtotal(["500", "1,000", "abc", None]) == 1500.0


def test_format_amount():
    assert format_amount(1500) == "₦1,500"
    assert format_amount(12.5) == "₦12.50"
    assert format_amount(None) == "₦0"


def test_quick_add_shorthand():
    assert parse_quick_add("Fanta x2") == ("Fanta", 2)
    assert parse_quick_add("coca cola X10") == ("coca cola", 10)
    assert parse_quick_add("Fanta") is None
    assert parse_quick_add("Fanta x0") is None
    assert parse_quick_add("Fanta x101") is None


def test_contact_info_split():
    assert parse_contact_info("08012345678 hello@acme.ng") == ("hello@acme.ng", "08012345678")
    assert parse_contact_info("hello@acme.ng") == ("hello@acme.ng", None)
    assert parse_contact_info("+234 801 234 5678") == (None, "+234 801 234 5678")
    assert parse_contact_info("call the shop") == (None, None)


def test_strip_quotes():
    assert strip_quotes('"Fanta"') == "Fanta"
    assert strip_quotes("“Fanta”") == "Fanta"


def test_month_helpers():
    assert parse_month("2026-09") == datetime(2026, 9, 1)
    assert parse_month("2026-13") is None
    assert parse_month("September") is None
    assert parse_month("0000-05") is None
    assert parse_month("9999-12") is None
    assert parse_month("9998-12") == datetime(9998, 12, 1)
    assert month_range(datetime(2026, 12, 15)) == (datetime(2026, 12, 1), datetime(2027, 1, 1))


def test_add_months_clamps_day():
    assert add_months(datetime(2026, 8, 31), 6) == datetime(2027, 2, 28)
    assert add_months(datetime(2026, 1, 15), 6) == datetime(2026, 7, 15)


def test_ticket_id_is_base36_milliseconds():
    assert make_ticket_id(datetime(1970, 1, 1, 0, 0, 1)) == "TRS"
    assert make_ticket_id(datetime(2026, 10, 19)).startswith("T")

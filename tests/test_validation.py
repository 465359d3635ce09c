import pytest

from yuandi.domain.validation import is_valid_phone, validate_order


@pytest.fixture
def valid():
    return {
        "customer_name": "홍길동",
        "customer_phone": "010-1234-5678",
        "pccc": "P123456789012",
        "shipping_address": "서울시 강남구 테헤란로 123",
        "items": [{"product_id": "prod-1", "quantity": 2, "price": 5000}],
    }


def test_valid_order_passes(valid):
    result = validate_order(valid)
    assert result.is_valid is True
    assert result.errors == []


def test_accepts_order_input(order_input):
    assert validate_order(order_input).is_valid


@pytest.mark.parametrize("value", ["", "   ", None])
def test_customer_name_required(valid, value):
    valid["customer_name"] = value
    result = validate_order(valid)
    assert result.is_valid is False
    assert "Customer name is required" in result.errors


def test_phone_required(valid):
    valid["customer_phone"] = " "
    assert validate_order(valid).errors == ["Customer phone is required"]


@pytest.mark.parametrize("phone", ["1234", "02-123-4567", "010-12-5678", "010-1234-567", "+82-10-1234-5678"])
def test_phone_format(valid, phone):
    valid["customer_phone"] = phone
    assert validate_order(valid).errors == ["Invalid phone number format"]


@pytest.mark.parametrize("phone", ["010-1234-5678", "01012345678", "011-123-4567", "010 1234 5678", "0101234-5678"])
def test_valid_phone_formats(phone):
    assert is_valid_phone(phone)


def test_pccc_required(valid):
    valid.pop("pccc")
    assert validate_order(valid).errors == ["PCCC is required"]


@pytest.mark.parametrize("pccc", ["INVALID", "P12345678901", "P1234567890123", "p123456789012", "123456789012"])
def test_pccc_format(valid, pccc):
    valid["pccc"] = pccc
    assert validate_order(valid).errors == ["Invalid PCCC format"]


def test_shipping_address_required(valid):
    valid["shipping_address"] = ""
    assert validate_order(valid).errors == ["Shipping address is required"]


@pytest.mark.parametrize("items", [[], None])
def test_items_required(valid, items):
    valid["items"] = items
    assert validate_order(valid).errors == ["Order must have at least one item"]


def test_item_errors_are_indexed(valid):
    valid["items"] = [
        {"product_id": "ok", "quantity": 1, "price": 0},
        {"product_id": "", "quantity": 0, "price": -1},
        {"product_id": "p3", "quantity": 1.5, "price": "10"},
    ]
    result = validate_order(valid)
    assert result.errors == [
        "Item 2: Product ID is required",
        "Item 2: Quantity must be positive",
        "Item 2: Price cannot be negative",
        "Item 3: Quantity must be an integer",
        "Item 3: Price must be a number",
    ]


def test_all_errors_are_collected():
    result = validate_order({})
    assert result.is_valid is False
    assert result.errors == [
        "Customer name is required",
        "Customer phone is required",
        "PCCC is required",
        "Shipping address is required",
        "Order must have at least one item",
    ]


def test_never_raises_on_odd_input():
    assert validate_order(None).is_valid is False
    assert validate_order({"items": "abc"}).is_valid is False
    assert validate_order({"customer_phone": 1012345678}).errors[1] == "Customer phone is required"

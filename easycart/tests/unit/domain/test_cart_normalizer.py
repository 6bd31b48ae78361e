from decimal import Decimal

import pytest

from easycart.domain.cart_normalizer import normalize_cart, normalize_grouped
from easycart.domain.entities import CartSelection, PaymentMode


def _payload(**overrides):
    data = {
        "groupedCart": {
            "categories": [
                {"id": "c1", "name": "Deep Cleaning", "price": "600", "quantity": 1},
                {"id": "c2", "name": "Sofa Cleaning", "price": "200", "quantity": 2},
            ],
            "packages": [{"id": "p1", "package_name": "Home Combo", "subtotal": "300"}],
        },
        "totalPrice": "1350",
        "convinencecharge": "50",
    }
    data.update(overrides)
    return data


def test_normalize_cart_reads_engine_spelling():
    snapshot = normalize_cart(_payload(), CartSelection(), generation=3)

    assert [line.id for line in snapshot.grouped_items.categories] == ["c1", "c2"]
    assert snapshot.grouped_items.categories[1].subtotal == Decimal("400")
    assert snapshot.grouped_items.packages[0].name == "Home Combo"
    assert snapshot.total_price == Decimal("1350")
    assert snapshot.convenience_charge == Decimal("50")
    # 1300 + 50 - 1350
    assert snapshot.savings_amount == Decimal("0")
    assert snapshot.generation == 3
    assert snapshot.item_counts.services == 2
    assert snapshot.item_counts.packages == 1


def test_normalize_cart_accepts_snake_case_and_derives_savings():
    data = {
        "grouped_cart": {"categories": [{"id": "c1", "subtotal": "1000"}]},
        "total_price": "900",
        "convenience_charge": "0",
    }
    snapshot = normalize_cart(data, CartSelection())

    assert snapshot.savings_amount == Decimal("100")
    assert snapshot.total_price == Decimal("900")


def test_normalize_cart_uses_discount_when_total_missing():
    data = {
        "groupedCart": {"categories": [{"id": "c1", "subtotal": "500"}]},
        "totalDiscount": "80",
        "convenienceCharge": "20",
    }
    snapshot = normalize_cart(data, CartSelection())

    assert snapshot.savings_amount == Decimal("80")
    assert snapshot.total_price == Decimal("440")


def test_normalize_cart_rejects_total_above_gross():
    with pytest.raises(ValueError):
        normalize_cart(_payload(totalPrice="9999"), CartSelection())


def test_normalize_cart_rejects_non_numeric_total():
    with pytest.raises(ValueError):
        normalize_cart(_payload(totalPrice="abc"), CartSelection())


def test_normalize_cart_requires_object():
    with pytest.raises(ValueError):
        normalize_cart(None, CartSelection())


def test_line_name_and_subtotal_from_nested_services():
    grouped = normalize_grouped(
        {
            "categories": [
                {
                    "_id": "cat-9",
                    "ratecard": {"subcategory": {"name": "Kitchen"}},
                    "services": [{"price": 100, "quantity": 2}, {"subtotal": "50"}],
                }
            ]
        }
    )

    line = grouped.categories[0]
    assert line.id == "cat-9"
    assert line.name == "Kitchen"
    assert line.subtotal == Decimal("250")


def test_coupon_reported_only_for_requesting_selection():
    data = _payload(totalPrice="1300", coupon_code="save50", coupon_value="50")

    without = normalize_cart(data, CartSelection())
    with_coupon = normalize_cart(data, CartSelection(coupon_code="SAVE50"))

    assert without.applied_coupon is None
    assert with_coupon.applied_coupon.code == "SAVE50"
    assert with_coupon.applied_coupon.discount_value == Decimal("50")
    assert with_coupon.applied_coupon.is_free is False


def test_informational_amounts_are_lenient():
    data = _payload(user_wallet_amount="oops", wallet_amount_used="-5", vip_plan="199")
    snapshot = normalize_cart(data, CartSelection())

    assert snapshot.wallet_balance == Decimal("0")
    assert snapshot.wallet_deduction == Decimal("0")
    assert snapshot.vip_plan_price == Decimal("199")


def test_vip_plan_fee_is_folded_into_charges():
    data = {
        "groupedCart": {"categories": [{"id": "c1", "subtotal": "1000"}]},
        "convinencecharge": "49",
        "vip_plan": "599",
        "totalPrice": "1448",
    }
    selection = CartSelection(payment_mode=PaymentMode.VIP, vip_plan_id="p1")

    snapshot = normalize_cart(data, selection)

    assert snapshot.subscription_fee == Decimal("599")
    assert snapshot.convenience_charge == Decimal("648")
    assert snapshot.savings_amount == Decimal("200")
    assert snapshot.total_price == Decimal("1448")


def test_plan_fee_not_charged_outside_vip_mode():
    data = {
        "groupedCart": {"categories": [{"id": "c1", "subtotal": "1000"}]},
        "convinencecharge": "49",
        "vip_plan": "599",
        "totalPrice": "1448",
    }
    with pytest.raises(ValueError, match="exceeds"):
        normalize_cart(data, CartSelection())


def test_total_tax_is_folded_into_charges():
    data = _payload(totalPrice="1368", total_tax="18")
    snapshot = normalize_cart(data, CartSelection())

    assert snapshot.tax_amount == Decimal("18")
    assert snapshot.convenience_charge == Decimal("68")
    assert snapshot.savings_amount == Decimal("0")


def test_coupon_without_engine_acknowledgement_is_dropped():
    snapshot = normalize_cart(_payload(), CartSelection(coupon_code="BOGUS"))
    assert snapshot.applied_coupon is None


def test_coupon_object_is_read():
    data = _payload(totalPrice="1250", coupon={"code": "first100", "discountValue": "100"})
    snapshot = normalize_cart(data, CartSelection(coupon_code="FIRST100"))

    assert snapshot.applied_coupon.code == "FIRST100"
    assert snapshot.applied_coupon.discount_value == Decimal("100")

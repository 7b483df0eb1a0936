# app/billing/invoice_math.py
"""
Invoice arithmetic. Money is Decimal, rounded half-up to 2 places at every
stored step (line amount, subtotal, tax, total).
"""
import random
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Tuple

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class InvoiceTotals:
    line_amounts: Tuple[Decimal, ...]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount: Decimal
    total_amount: Decimal


def line_amount(quantity: int, unit_price) -> Decimal:
    return to_money(Decimal(quantity) * Decimal(str(unit_price)))


def compute_invoice_totals(items: Iterable, tax_rate, discount=0) -> InvoiceTotals:
    """
    subtotal = sum(quantity x unit price)
    tax      = subtotal x rate / 100
    total    = subtotal + tax - discount

    `items` are (quantity, unit_price) pairs or objects with those attributes.
    A discount larger than subtotal + tax is rejected.
    """
    amounts: List[Decimal] = []
    for item in items:
        if isinstance(item, tuple):
            quantity, unit_price = item
        else:
            quantity, unit_price = item.quantity, item.unit_price
        amounts.append(line_amount(quantity, unit_price))

    rate = Decimal(str(tax_rate))
    discount = to_money(discount)
    subtotal = to_money(sum(amounts, Decimal("0")))
    tax_amount = to_money(subtotal * rate / 100)
    total = to_money(subtotal + tax_amount - discount)
    if total < 0:
        raise ValueError("Discount cannot exceed the invoice amount")

    return InvoiceTotals(
        line_amounts=tuple(amounts),
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        discount=discount,
        total_amount=total,
    )


def generate_invoice_number() -> str:
    """INV-<epoch millis>-<0..999>"""
    return f"INV-{int(time.time() * 1000)}-{random.randint(0, 999)}"

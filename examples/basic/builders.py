"""
Basic order pricing builders.

Demonstrates:
- Function builders referenced from a flow file
- A DataBuilder subclass created fresh for every lookup
- Failing a run with a structured BuilderError payload
"""

from databuilder import Data, DataBuilder, DataValidationError


def line_total(context):
    """Price of one order line before discounts."""
    order = context.value("order")
    return order["unit_price"] * order["quantity"]


def discount_rate(context):
    customer = context.value("customer")
    return 0.1 if customer.get("tier") == "gold" else 0.0


class Invoice(DataBuilder):
    """Applies the discount and rejects negative totals."""

    def process(self, context):
        subtotal = context.value("subtotal")
        if subtotal < 0:
            raise DataValidationError("subtotal must not be negative", details={"subtotal": subtotal})
        total = round(subtotal * (1 - context.value("discount")), 2)
        return Data(self.meta.produces, {"subtotal": subtotal, "total": total})

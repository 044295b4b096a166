"""Expressions -- evaluating standalone expressions.

``compile_expression()`` parses a single expression. Evaluating it
returns a ``Value`` instead of text, which makes it useful for rule
engines and configuration conditions.

Run:
    python app.py
"""

from vela import Environment

env = Environment()

rule = env.compile_expression("order.total >= threshold and order.country in allowed")

orders = [
    {"id": 1, "total": 120, "country": "NL"},
    {"id": 2, "total": 80, "country": "NL"},
    {"id": 3, "total": 300, "country": "US"},
]
approved = [
    order["id"]
    for order in orders
    if rule.eval(order=order, threshold=100, allowed=["NL", "BE"]).is_true()
]

discount = env.compile_expression("(total * rate) | round(2)")
discount_value = discount.eval({"total": 59.99, "rate": 0.15})

# An expression that reads a missing name evaluates to undefined
missing = env.compile_expression("settings.theme").eval(settings={})


def main() -> None:
    print(f"Approved orders: {approved}")
    print(f"Discount: {discount_value}")
    print(f"Theme defined: {not missing.is_undefined}")


if __name__ == "__main__":
    main()

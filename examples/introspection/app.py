"""Template introspection -- finding the variables a template needs.

``undeclared_variables()`` lists the names a template reads from its
context without rendering it. Names bound with ``{% set %}`` before use
are not reported. With ``track_paths=True`` the attribute paths are
reported instead (``user.name`` rather than ``user``).

Run:
    python app.py
"""

from vela import Environment

env = Environment()

env.add_template(
    "profile.txt",
    "{% set greeting = 'Hi' %}"
    "{{ greeting }} {{ user.name }} ({{ user.email | default('no email') }})\n"
    "{{ site['title'] }} / {{ items[0] }}",
)

template = env.get_template("profile.txt")

# What context variables does this template need?
required = template.undeclared_variables()

# Which attribute paths does it read?
paths = template.undeclared_variables(track_paths=True)

# Expressions can be analysed the same way
expression = env.compile_expression("order.total > limit")
expression_names = expression.undeclared_variables()

# Validate a context before rendering
context = {"user": {"name": "Ada"}}
missing = sorted(required - context.keys())

lines = [
    f"Required context: {sorted(required)}",
    f"Dependencies: {sorted(paths)}",
    f"Expression needs: {sorted(expression_names)}",
    f"Missing: {missing}",
]
output = "\n".join(lines)


def main() -> None:
    print("=== Template Introspection ===\n")
    for line in lines:
        print(f"  {line}")


if __name__ == "__main__":
    main()

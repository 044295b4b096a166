"""Custom filters, functions and tests -- extending Vela.

Every callable declares its parameters with ``@signature``. Demonstrates
add_filter(), the @env.filter() decorator, a Rest collector, a Kwargs
collector and a callable that receives the render state.

Run:
    python app.py
"""

from vela import Environment, KwargsSlot, Param, Rest, signature

env = Environment()


# Custom filter: add_filter()
@signature(Param("value", "str"), Param("n", "int"))
def repeat(value: str, n: int) -> str:
    """Repeat a string n times."""
    return value * n


env.add_filter("repeat", repeat)


# Custom filter: @signature with a single text parameter
@signature(Param("value", "str"))
def slugify(value: str) -> str:
    """Lowercase and join the words with hyphens."""
    return "-".join(value.lower().split())


env.add_filter("slugify", slugify)


# Custom filter: @env.filter() decorator with a keyword collector
@env.filter()
@signature(Param("value", "seq"), KwargsSlot("options"))
def sort_by(value, options):
    """Sort a list; reads ``reverse`` and ``limit`` from the keywords."""
    items = sorted(value, reverse=bool(options.get("reverse", False)))
    limit = options.get("limit")
    return items[:limit] if limit is not None else items


# Custom function: variadic positionals plus a keyword-only option
@signature(Rest("values", "int"), Param("op", "str", default="add"))
def fold(values: list[int], op: str) -> int:
    """Sum or multiply all arguments."""
    if op == "mul":
        result = 1
        for value in values:
            result *= value
        return result
    return sum(values)


env.add_function("fold", fold)


# Custom function that reads the render state
@signature(pass_state=True)
def template_name(state) -> str:
    return state.name


env.add_function("template_name", template_name)


# Custom test: add_test()
@signature(Param("value", "int"))
def is_prime(n: int) -> bool:
    """Test if integer is prime."""
    if n < 2:
        return False
    return all(n % i != 0 for i in range(2, int(n**0.5) + 1))


env.add_test("prime", is_prime)

env.add_template(
    "report.txt",
    "Hello {{ author | slugify }}!\n"
    "{{ 'Na ' | repeat(3) }}Batman!\n"
    "sum={{ fold(1, 2, 3, 4) }} product={{ fold(1, 2, 3, 4, op='mul') }}\n"
    "top={{ scores | sort_by(reverse=true, limit=2) | join(',') }}\n"
    "{{ item_count }} is {{ 'prime' if item_count is prime else 'composite' }}\n"
    "from {{ template_name() }}",
)

template = env.get_template("report.txt")

output = template.render(scores=[12, 40, 7, 33], item_count=7, author="John Wild Oak")


def main() -> None:
    print(output)


if __name__ == "__main__":
    main()

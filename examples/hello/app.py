"""Hello World -- the simplest Vela example.

Register a template from a string and render it with context variables.

Run:
    python app.py
"""

from vela import Environment

env = Environment()

env.add_template("hello.txt", "Hello {{ what }}!")
template = env.get_template("hello.txt")

# Render with context
output = template.render(what="World")


def main() -> None:
    print(output)
    print()

    # Multiple renders with different context
    for what in ["Vela", "Templates", "Python"]:
        print(template.render({"what": what}))


if __name__ == "__main__":
    main()

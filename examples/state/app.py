"""Render state -- reading back the variables a template set.

``render_and_return_state()`` returns the output together with the
frozen render state. ``{% set %}`` bindings are the template's exports;
``eval_to_state()`` runs a template only for those exports.

Run:
    python app.py
"""

from vela import Environment

env = Environment()

env.add_template("state.txt", "{% set x = 42 %}Hello {{ what }}!")
env.add_template(
    "config.txt",
    "{% set title = name | title %}"
    "{% set slug = name | lower | replace(' ', '-') %}"
    "{% set pages = range(1, count + 1) %}",
)

output, state = env.get_template("state.txt").render_and_return_state(what="World")

config = env.get_template("config.txt").eval_to_state(name="Release Notes", count=3)
exports = {name: value.to_python() for name, value in config.exports().items()}


def main() -> None:
    print(output)
    print(f"x = {state.lookup('x')}")
    for name, value in exports.items():
        print(f"{name} = {value!r}")


if __name__ == "__main__":
    main()

"""Dynamic objects -- exposing host types through the Object protocol.

A host object only needs ``get_attribute`` and ``enumerate_attributes``.
Templates read its attributes like map keys; unknown attributes are
undefined rather than errors.

Run:
    python app.py
"""

from vela import Environment, Value


class Point:
    """A 3D point whose coordinates are computed on access."""

    def __init__(self, x: int, y: int, z: int) -> None:
        self._coords = {"x": x, "y": y, "z": z}

    def get_attribute(self, name: Value):
        return self._coords.get(name.as_str())

    def enumerate_attributes(self):
        return ("x", "y", "z")


class Settings:
    """Read-only view over a dict, falsy when empty."""

    def __init__(self, values: dict[str, object]) -> None:
        self._values = dict(values)

    def get_attribute(self, name: Value):
        return self._values.get(name.as_str())

    def enumerate_attributes(self):
        return tuple(self._values)

    def is_true(self) -> bool:
        return bool(self._values)


env = Environment()
env.add_global("origin", Value.from_object(Point(0, 0, 0)))

env.add_template(
    "point.txt",
    "({{ point.x }}, {{ point['y'] }}, {{ point.z }})"
    " w={{ point.w | default('n/a') }}"
    " attrs={{ point | list | join('') }}"
    " origin={{ origin.x }}",
)

point = Value.from_object(Point(1, 2, 3))
output = env.get_template("point.txt").render(point=point)

settings_output = env.render_str(
    "{{ 'configured' if settings else 'empty' }}",
    settings=Value.from_object(Settings({})),
)


def main() -> None:
    print(output)
    print(settings_output)


if __name__ == "__main__":
    main()

"""Streaming -- producing output chunk by chunk.

``render_stream()`` yields chunks as they are evaluated, and
``render_to_sink()`` writes them to anything with a ``write`` method.
Neither builds the whole output in memory.

Run:
    python app.py
"""

import io

from vela import Environment

env = Environment(trim_blocks=True)

env.add_template(
    "report.txt",
    "Quarterly Report\n"
    "{% set growth = (revenue - last_revenue) / last_revenue * 100 %}\n"
    "Revenue: {{ revenue }}\n"
    "Growth: {{ growth | round(1) }}%\n"
    "Users: {{ users }}\n"
    "Churn: {{ churn }}%\n",
)

template = env.get_template("report.txt")
context = {"revenue": 125000, "last_revenue": 100000, "users": 4200, "churn": 2.5}

# Stream chunks
chunks = list(template.render_stream(context))
output = "".join(chunks)

# Write into a sink; the render state comes back when it finishes
sink = io.StringIO()
sink_state = env.render_to_sink("report.txt", context, sink)
sink_output = sink.getvalue()


def main() -> None:
    for chunk in template.render_stream(context):
        print(chunk, end="", flush=True)


if __name__ == "__main__":
    main()

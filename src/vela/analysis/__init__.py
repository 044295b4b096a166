"""Static analysis of compiled Vela templates.

Works on the node tree without a render context.
"""

from vela.analysis.undeclared import UndeclaredWalker

__all__ = ["UndeclaredWalker"]

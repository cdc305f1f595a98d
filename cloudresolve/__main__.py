"""Allow ``python -m cloudresolve``."""

from .cli import run

run()

"""Trading academy store: schema, row policies, views and seeding."""

# Registers the SQLite foreign-key pragma and the pre-flush domain guard.
from . import constraints  # noqa: F401

"""Client-side domain state for the Mawaddah membership product.

Four state containers (session, profile, search, favorites) sit on top of a thin
HTTP client and a persisted key-value store. There is no UI in this package;
views observe the stores through `Store.subscribe`.
"""

__version__ = "0.1.0"

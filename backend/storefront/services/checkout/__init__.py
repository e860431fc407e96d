"""Client-held cart model and delivery quoting."""

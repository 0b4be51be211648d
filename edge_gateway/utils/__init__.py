"""XML codec and rule matching helpers."""

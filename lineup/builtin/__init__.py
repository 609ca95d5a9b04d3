"""Built-in components shipped with lineup."""

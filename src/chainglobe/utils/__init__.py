"""Number coercion and display formatting helpers."""

"""Data services: result types, caches, aggregation and warm-up."""

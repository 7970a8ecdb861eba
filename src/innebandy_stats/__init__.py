"""Player scoring tables for innebandy competitions, built from the federation API."""

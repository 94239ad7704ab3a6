"""A small application used by the autowiring tests."""

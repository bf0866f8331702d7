"""Retail POS transaction engine: units, cart, pricing and checkout."""

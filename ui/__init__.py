"""Web surface for the front desk board."""

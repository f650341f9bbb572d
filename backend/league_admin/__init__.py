"""League admin backend: disputes, late cancellations, penalties and result overrides."""

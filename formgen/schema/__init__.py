"""Schema and resource script generators with field-coverage validation."""

"""Legacy Oracle Forms ingestion: parser, spec extraction, field converter."""

"""Shared helpers: config, ids, YAML and history IO, schemas, logging."""

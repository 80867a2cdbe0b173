"""Storage layer: schema, engine/session helpers and the generic repository."""

"""Core engine: forest discovery, history merge, path mapping and status."""

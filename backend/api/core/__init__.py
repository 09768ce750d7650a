"""API service core: configuration, logging, database, dependencies."""

"""Configuration, database and error plumbing."""

"""Configuration, logging and authentication."""

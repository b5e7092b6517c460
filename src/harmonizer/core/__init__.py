"""Configuration and logging for the harmonizer."""

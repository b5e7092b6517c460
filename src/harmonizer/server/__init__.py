"""HTTP surface for the harmonizer."""

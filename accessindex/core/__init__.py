"""Normalization, validation, classification and wiring for the handler sets."""

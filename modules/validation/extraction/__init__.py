"""Extraction components of the validation pipeline."""

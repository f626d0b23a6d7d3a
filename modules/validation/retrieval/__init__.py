"""Retrieval components of the validation pipeline."""

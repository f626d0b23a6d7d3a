"""Parsing components of the validation pipeline."""

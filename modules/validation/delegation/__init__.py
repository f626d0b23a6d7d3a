"""Delegation components of the validation pipeline."""

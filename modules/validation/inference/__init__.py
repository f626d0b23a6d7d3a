"""Inference components of the validation pipeline."""

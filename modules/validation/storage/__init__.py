"""Storage components of the validation pipeline."""

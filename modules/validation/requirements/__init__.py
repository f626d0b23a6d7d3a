"""Requirements components of the validation pipeline."""

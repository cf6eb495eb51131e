"""Shared utilities: errors, normalization, validation, pagination."""

"""Data validation module for catalog files."""

from catalog_match.analysis.validation.data_validator import DataValidator

__all__ = ["DataValidator"]

"""Subcheck - periodic subscription re-validation with failure-based eviction."""

__app_name__ = "subcheck"
__version__ = "0.1.0"

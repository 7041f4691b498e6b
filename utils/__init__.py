"""
Utility package for model persistence and validation.
"""

"""
Core package for shared utilities.

Configuration, structured logging and identity verification used across
the storefront backend.
"""

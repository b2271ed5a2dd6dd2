"""
Configuration loading for pricing models.
"""

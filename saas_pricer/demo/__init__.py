"""
Bundled sample pricing model.
"""

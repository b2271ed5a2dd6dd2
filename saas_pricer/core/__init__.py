"""
Core calculation engine for saas-pricer.

This package contains the pure numeric functionality for COGS, tier cost
projection, margins, scenario simulation, valuation, growth milestones,
unit economics and investor metrics.
"""

"""
Pricing - Price reference models and the price-changing algorithms

Models for items and tender totals, the action executor, the threshold
reduction algorithm and the rounding pass.
"""

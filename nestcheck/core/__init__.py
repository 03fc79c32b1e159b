"""
Core of nestcheck: types, errors, models, rule providers and the rule set engine.
"""

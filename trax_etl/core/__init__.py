"""
Normalization and unification core: models, coercion, validation and
per-platform mapping rules.
"""

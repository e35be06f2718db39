# ============================================================================
# src/rxplain/processors/__init__.py
# ============================================================================
"""
Deterministic processors over extracted medication data.
"""

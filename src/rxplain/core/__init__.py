# ============================================================================
# src/rxplain/core/__init__.py
# ============================================================================
"""
Core configuration, agent base and pipeline data types.
"""

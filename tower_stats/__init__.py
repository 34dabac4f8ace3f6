"""
Tower Stats — Turns OCR'd battle-report screenshots into validated run records.

Architecture: Line pairing (half-split or LLM) → Field validation → Record build → Duplicate-guarded store
Philosophy:  Every input yields a complete record. Only clean records are stored.
"""

__version__ = "1.0.0"

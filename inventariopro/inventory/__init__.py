"""
Stock movement ledger
"""

from .models import Movement, MovementReason, MovementType

__all__ = ["Movement", "MovementReason", "MovementType"]

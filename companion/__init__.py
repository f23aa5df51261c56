"""
Companion: a virtual pet simulation engine.

Pets drift while left alone, react to care, level up, bond with their
owner and evolve through their species' stages. PetManager is the entry
point; systems/ holds the pure rules it composes.
"""

__version__ = "0.1.0"

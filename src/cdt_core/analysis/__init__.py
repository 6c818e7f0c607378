"""
Analysis functions - depend on operators layer.

Separated from builders to maintain clean layering:
    builders → operators → engine → contract
    analysis → operators → engine → contract
"""

from .verify_foliation import verify_foliated_structure, timeslice_histogram

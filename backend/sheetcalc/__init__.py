"""sheetcalc - reactive recalculation engine for a grid of formula cells."""

__version__ = "1.0.0"

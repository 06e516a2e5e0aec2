"""Statistics reports.

Reads only attempts flagged as included, joined to their grid and
filtered on a grid size range. Forbidden: writes of any kind.
"""

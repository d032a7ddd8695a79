"""Utility module for Folio

Definitions/declarations in this module should be independent of other modules,
to the maximum extent possible.
"""

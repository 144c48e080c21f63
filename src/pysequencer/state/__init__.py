"""State/store layer.

This package is the single source of truth for the two lanes as reported by
the backend, plus the operator's view settings (search, filter, paging,
selection) and the derived, paged views the presentation layer renders.
"""

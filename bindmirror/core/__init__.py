"""
Reconciliation engine — path sets, status model, inference and the
mirror controller.
"""

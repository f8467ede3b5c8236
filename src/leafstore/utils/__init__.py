"""
Helpers for level arithmetic and directory naming.
"""

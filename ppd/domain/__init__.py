"""Domain rules that do not touch storage (codes, money, credit lifecycle, errors)."""

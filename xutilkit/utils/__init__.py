"""Helpers for integer lists, numbers, ids, wait groups, conversions and time."""
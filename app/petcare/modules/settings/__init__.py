"""
System settings (admin-only key/value configuration).
"""

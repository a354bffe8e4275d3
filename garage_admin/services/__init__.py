"""
Domain services. Each gated operation takes the caller's Permissions explicitly.
"""

"""
Domain model: the network roster and cross-provider identity resolution.
"""

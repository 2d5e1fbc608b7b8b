"""
CONTROLLER layer: the step engine and the read-only view snapshot.
"""

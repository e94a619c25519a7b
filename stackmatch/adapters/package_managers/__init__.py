"""Package-manager drivers, one module per OS package manager.

Drivers are looked up through
``stackmatch.core.services.installer.detection.detector``.
"""

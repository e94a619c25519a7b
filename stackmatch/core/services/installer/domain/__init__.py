"""
L1 Domain: pure logic for the installer: versions and rollback order.
"""

from stackmatch.core.services.installer.domain.rollback import rollback_order  # noqa: F401
from stackmatch.core.services.installer.domain.version import (  # noqa: F401
    Version,
    coerce_version,
    compare,
    is_valid_version,
    parse_version,
    satisfies,
    validate_constraint,
)

"""
Installer service: package re-exports for the pure layers.

    from stackmatch.core.services.installer import satisfies, get_package_name

Layers (data → domain → detection → execution → orchestration).
Detection and above depend on the package-manager adapters, which in
turn use the domain layer, so they are imported from their own modules:

    from stackmatch.core.services.installer.orchestration.orchestrator import InstallOrchestrator
"""

# ── L0: Data ──
from stackmatch.core.services.installer.data.mappings import (  # noqa: F401
    PackageMapping,
    PackageMappingTable,
    add_package_mapping,
    all_mappings,
    get_package_manager_name,
    get_package_name,
)

# ── L1: Domain ──
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

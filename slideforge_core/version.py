"""
SlideForge Version Management - Centralized version for all components

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

# =============================================================================
# SlideForge Version - Single Source of Truth
# =============================================================================

__version__ = "0.3.0"

VERSION_MAJOR = 0
VERSION_MINOR = 3
VERSION_PATCH = 0
VERSION_SUFFIX = ""  # e.g., "alpha", "beta", "rc1", ""

VERSION_FULL = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"
if VERSION_SUFFIX:
    VERSION_FULL = f"{VERSION_FULL}-{VERSION_SUFFIX}"

# Written into the document core properties of every generated deck
PRODUCER = f"SlideForge {VERSION_FULL}"

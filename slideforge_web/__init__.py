"""
SlideForge Web - presentation form and REST API

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from slideforge_core.version import __version__

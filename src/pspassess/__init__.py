"""
pspassess - Policy, Standard and Procedure Self-Assessment

Turns an organization's self-reported configuration and interview answers
into rendered security policy/procedure documents and a compliance
self-assessment report that enumerates gaps against a named standard.

Key Features:
    - Interview questions per compliance standard (currently HIPAA)
    - Gap detection from interview answers and from rendered procedures
    - Standard-to-control mapping table with met/gap status
    - Optional risk items pulled from an external risk registry
    - Markdown output suitable for a documentation site

Design Principles:
    - Determinism: identical inputs always produce identical reports
    - Fail fast: a missing template or failed query never yields a partial report
    - Transparency: every gap is traceable to an answer or a procedure
"""

__version__ = "0.1.0"

from pspassess.config.settings import Settings, load_config

__all__ = [
    "__version__",
    "Settings",
    "load_config",
]

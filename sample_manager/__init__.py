"""
Sample Manager - audio sample analysis and byte cache.

Structure:
- core/      - Application core (config, errors, interfaces, connectors, cache, adapters)
- common/    - Shared utilities (logging, primitives)
- modules/   - Business modules (analysis pipelines and services)
"""

__version__ = "0.1.0"

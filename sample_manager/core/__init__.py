"""
Core - Application infrastructure.

- config/      - Settings and factory functions
- interfaces/  - Protocols for DI
- connectors/  - Byte store implementations (SQLite, Memory)
- cache/       - Size- and age-bounded sample cache
- adapters/    - Audio decoding
- errors.py    - Error taxonomy
"""

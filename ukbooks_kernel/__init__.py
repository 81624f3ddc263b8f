"""
UK Books Kernel

Shared foundation for the UK invoicing tax engine:
- Decimal-backed Money and Currency value objects
- Field-level validation DTOs
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"

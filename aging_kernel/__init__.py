"""
Aging Kernel

Shared foundation for the aging engines and modules:
- Money and Currency value objects with precision-derived tolerance
- Calendar boundary (Jalali / Gregorian parsing into ``datetime.date``)
- Injectable clock
- Structured JSON logging
- Typed exception hierarchy
"""

__version__ = "0.1.0"

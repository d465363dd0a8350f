"""Critical Path Method scheduling engine."""

__version__ = '0.1.0'

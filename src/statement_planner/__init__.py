"""Credit card statement cycle allocation and installment projection."""

__version__ = "0.1.0"

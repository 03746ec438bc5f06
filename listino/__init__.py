"""Import, abbinamento e calcolo prezzi dei listini fornitore."""

__version__ = "0.1.0"

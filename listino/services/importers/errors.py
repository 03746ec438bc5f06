class PriceListError(Exception):
    """Errore base per l'import dei listini fornitore."""


class PriceListFileError(PriceListError):
    """File mancante, non leggibile o privo di contenuto."""


class UnsupportedFormatError(PriceListError, ValueError):
    """Nessun parser registrato gestisce l'estensione del file."""


class PriceListParseError(PriceListError, ValueError):
    """La libreria di lettura ha rifiutato il contenuto del file."""

"""Fill spreadsheet columns with boat type descriptions from a language-model API."""

__version__ = "0.1.0"

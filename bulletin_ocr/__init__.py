"""SNCF bulletin OCR system.

Turns scanned or exported "bulletins de commande" into normalized shift
entries using the Mistral vision and text models, with a regex-based
manual extraction as last resort.
"""

__version__ = "1.0.0"

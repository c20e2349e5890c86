"""
Query constants.

Wire-level names and limits shared by the query modules.
"""

import string

# Series letters are assigned by target position; only 26 are available
SERIES_REF_LETTERS = string.ascii_uppercase
MAX_TARGETS = len(SERIES_REF_LETTERS)

# Options forwarded to /render, in serialization order
RENDER_OPTIONS = ("from", "until", "rawData", "format", "maxDataPoints", "cacheTimeout")

# Backend spelling of minute/month units
UNIT_ALIASES = {"m": "min", "M": "mon"}

ROUND_UP = "round-up"
ROUND_DOWN = "round-down"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

ANNOTATION_MAX_DATA_POINTS = 100

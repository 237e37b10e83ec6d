"""Supplementary helpers used by the command-line entry points."""

from .geonames import geonames_resolver, lookup_timezone

__all__ = ["geonames_resolver", "lookup_timezone"]

"""Endpoint manifest loading and structural validation."""

from .loader import load_manifest, parse_manifest, validate_manifest_structure
from .models import HTTP_METHODS, EndpointDeclaration, Manifest

__all__ = [
    "HTTP_METHODS",
    "EndpointDeclaration",
    "Manifest",
    "load_manifest",
    "parse_manifest",
    "validate_manifest_structure",
]

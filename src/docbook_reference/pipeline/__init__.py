"""Filtering, resource unpacking, XSLT transformation and output finishing."""

from __future__ import annotations

from .catalog import CatalogManager, create_catalog_manager
from .filtering import DEFAULT_SOURCE_FILE_NAME, WORK_DIR_NAME, filter_sources
from .finishers import FopFormatter, Formatter, copy_images_and_css, finish_pdf
from .resources import RESOURCES_DIR_NAME, ResourceBundle, UnpackResult, unpack_resources
from .titlepage import generate_titlepages, patch_exsl_namespace
from .transform import TransformRunner, resolve_stylesheet


__all__ = [
    "DEFAULT_SOURCE_FILE_NAME",
    "RESOURCES_DIR_NAME",
    "WORK_DIR_NAME",
    "CatalogManager",
    "FopFormatter",
    "Formatter",
    "ResourceBundle",
    "TransformRunner",
    "UnpackResult",
    "copy_images_and_css",
    "create_catalog_manager",
    "filter_sources",
    "finish_pdf",
    "generate_titlepages",
    "patch_exsl_namespace",
    "resolve_stylesheet",
    "unpack_resources",
]

"""Export-surface resolution for ES modules and package manifests."""

from .errors import ExportsError, ManifestError, ResolveError
from .esm_exports import NODE_MODULES, ESMExportsResult, is_file_import_path, resolve_esm_exports
from .package_descriptor import PackageDescriptor, load_package_descriptor, resolve_esm_entry
from .reserved_words import RESERVED_WORDS, filter_reserved_words, is_reserved_word

__all__ = [
    "ESMExportsResult",
    "ExportsError",
    "ManifestError",
    "NODE_MODULES",
    "PackageDescriptor",
    "RESERVED_WORDS",
    "ResolveError",
    "filter_reserved_words",
    "is_file_import_path",
    "is_reserved_word",
    "load_package_descriptor",
    "resolve_esm_entry",
    "resolve_esm_exports",
]

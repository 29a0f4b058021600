__version__ = "0.1.0"

__all__ = [
    "__version__",
    "audit",
    "cli",
    "compiler",
    "contracts",
    "core",
    "corpus",
    "errors",
    "exit_codes",
    "gen",
    "manifest",
    "schema",
]

from dedlink.core.models import DEFAULT_STORE_DIR

STORE_HELP_TEXT = (
    "Directory holding one canonical copy per distinct content.\n"
    f"Relative paths are resolved against the current directory. Default: {DEFAULT_STORE_DIR}\n"
    "The store may be reused by later runs; existing entries are never rewritten."
)

DRY_RUN_HELP_TEXT = (
    "Scan and report duplicate groups without touching anything:\n"
    "no store directory is created, no file is moved, removed or linked."
)

VERIFY_HELP_TEXT = (
    "Compare bytes before replacing a file whose hash matches the store entry.\n"
    "Slower; guards against hash collisions."
)

EPILOG_TEXT = """
Examples:
  Preview which files would be replaced by links
  %(prog)s -i ~/Music --dry-run

  Deduplicate into the default store (.dedlink in the current directory)
  %(prog)s -i ~/Music

  Use an explicit store and keep removed duplicates in the system trash
  %(prog)s -i ~/Music --store ~/Music/.dedlink --trash

  Compare bytes as well as hashes, with detailed progress and statistics
  %(prog)s -i ~/Music --verify-content -v

Exit status is 1 when any group could not be fully deduplicated.
"""

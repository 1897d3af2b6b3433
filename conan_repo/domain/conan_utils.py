import re

# Placeholder used by Conan for a missing user or channel.
EMPTY_FIELD = "_"

REVISIONS_FILE = "revisions.txt"
CONANINFO_FILE = "conaninfo.txt"
EXPORT_DIR = "export"
PACKAGE_DIR = "package"

_NAME_SEGMENT = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_+.-]*")


def is_valid_name_segment(value: str) -> bool:
    """
    Accept reference components that are safe to use as a single storage key segment.
    """
    return bool(value) and len(value) <= 101 and _NAME_SEGMENT.fullmatch(value) is not None


def join_key(*parts) -> str:
    return "/".join(str(p).strip("/") for p in parts if str(p).strip("/"))


def parse_revision(value: str) -> int:
    """
    Parse a revision taken from a request path.
    """
    if not value.isascii() or not value.isdigit():
        raise ValueError(f"Invalid revision: {value!r}")
    return int(value)

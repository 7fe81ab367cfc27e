"""Literal constants used by rs-cache-finder."""

APP_NAME = "rs-cache-finder"

# Directories archived wholesale.
CACHE_DIR_PATTERNS = (
    r"^.jagex_cache_32$",
    r"^.file_store_32$",
    r"^jagexcache$",
    r"^classic$",
    r"^loginapplet$",
    r"^rsmap$",
    r"^runescape$",
    r"^cache-93423-17382-59373-28323$",
)

# Directories archived wholesale only when their parent matches CACHE_DIR_PARENT_PATTERNS.
PARENTED_CACHE_DIR_PATTERNS = (
    r"^live$",
    r"^live_beta$",
)

CACHE_DIR_PARENT_PATTERNS = (
    r"^oldschool$",
    r"^runescape$",
)

# Trees known to produce false positives.
EXCLUDED_DIR_PATTERNS = (
    r"^planeshift$",
)

CACHE_FILE_PATTERNS = (
    r"^code\.dat$",
    r"^jingle0\.mid$",
    r"^jingle1\.mid$",
    r"^jingle2\.mid$",
    r"^jingle3\.mid$",
    r"^jingle4\.mid$",
    r"^shared_game_unpacker\.dat$",
    r"^worldmap\.dat$",
    r"^1jfds",
    r"^94jfj",
    r"^a2155",
    r"^cht3f",
    r"^g34zx",
    r"^k23lk",
    r"^k4o2n",
    r"^lam3n",
    r"^mn24j",
    r"^plam3",
    r"^zck35",
    r"^zko34",
    r"^zl3kp",
    r"^zn12n",
    r"^24623168",
    r"^37966926",
    r"^236861982",
    r"^929793776",
    r"^60085811638",
    r"^1913169001452",
    r"^32993056653417",
    r"^3305336302107891869",
    r"^main_file_cache.",
    r"\.jag$",
    r"^loader.*\.(jar|cab|zip)$",
    r"^mapview.*\.(jar|cab|zip)$",
    r"^runescape.*\.(jar|cab|zip)$",
    r"^loginapplet.*\.(jar|cab|zip)$",
    r"^jag.*\.dll$",
    r"^(entity|land|maps|sounds).*\.mem$",
    r"mudclient",
    r"\.jag-",
    r"\.mem-",
)

MASKED_SEGMENT = "folder"
FOLDER_ID_PREFIX = "dir"
FOLDER_ID_WIDTH = 7
PREFIX_MAX_LENGTH = 69

BLOCK_SIZE = 512
END_OF_ARCHIVE_BLOCKS = 2

WARNING_PREFIX = "WARNING:"
ERROR_PREFIX = "ERROR:"

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
CONSOLE_LOG_FORMAT = "%(message)s"

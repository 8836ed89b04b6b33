"""Configuration constants, paths, and logging setup."""

import os
import pathlib
import logging

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
DATA_DIR = BASE_DIR / "input"
OUTPUT_DIR = pathlib.Path(
    os.environ.get("TOWERTILING_OUTPUT_DIR", str(BASE_DIR / "output")))

LOG_LEVEL = os.environ.get("TOWERTILING_LOG_LEVEL", "INFO").strip().upper()
COPYRIGHT_HOLDER = os.environ.get("TOWERTILING_COPYRIGHT_HOLDER", "").strip()
GENERATOR = "towertiling tower tiling generator"

# ── Tower geometry ───────────────────────────────────────────────────────
# Profile steps are integers; these convert them to model units.
RADIAL_UNIT = 1.0 / 8.0
HEIGHT_UNIT = 0.1
# Every tower stands on a plinth of this height before its profile.
BASE_HEIGHT = 0.2

# ── Tiling walk ──────────────────────────────────────────────────────────
DIRECTION_COUNT = 12
# Inclusive range of direction indices scanned around each seed (mod 12).
STAR_SCAN_START = 10
STAR_SCAN_END = 15
# 150 degree turn, then back off clockwise until an edge exists.
TURN_STEP = 5

# ── glTF ─────────────────────────────────────────────────────────────────
GLB_MAGIC = b"glTF"
GLB_VERSION = 2
CHUNK_TYPE_JSON = b"JSON"
CHUNK_TYPE_BIN = b"BIN\x00"

GLTF_FLOAT = 5126
GLTF_UNSIGNED_INT = 5125

TARGET_ARRAY_BUFFER = 34962
TARGET_ELEMENT_ARRAY_BUFFER = 34963

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO),
                    format='%(asctime)s - %(levelname)s - %(message)s')

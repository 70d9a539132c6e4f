"""Galaxy-wide constants for Starweave."""

# --- Metadata ---
PROJECT_NAME = "starweave"
SAVE_VERSION = "2.0.0"
SAVE_KEY = "galaxy"

# --- Galaxy defaults ---
DEFAULT_SEED = 42
DEFAULT_SIZE = 50_000.0  # Galaxy radius in light years
DEFAULT_STAR_COUNT = 50
DEFAULT_SPIRAL_ARMS = 4
DEFAULT_ARM_TIGHTNESS = 0.3
DEFAULT_CORE_SIZE = 5_000.0
DEFAULT_STAR_DENSITY = 0.1

# Fraction of stars that get a planetary system / systems with a belt
SYSTEM_CHANCE = 0.6
ASTEROID_BELT_CHANCE = 0.3

# --- Manager defaults ---
AUTOSAVE_INTERVAL = 60.0  # Seconds
CHUNK_LOAD_RADIUS = 500.0  # Light years
MAX_LOADED_SYSTEMS = 100
START_SEARCH_RADIUS = 5_000.0
CHUNK_CACHE_CAPACITY = 64
NEW_GAME_STAR_COUNT = 800
NEW_GAME_SIZE = 30_000.0

# --- Chunk quantization ---
CHUNK_POSITION_STEP = 1000
CHUNK_RADIUS_STEP = 100

# --- Physics ---
SOLAR_TEMPERATURE = 5778.0  # Kelvin
SOLAR_LIFETIME = 10_000.0  # Million years
HZ_INNER_FLUX = 1.1
HZ_OUTER_FLUX = 0.53
EQUILIBRIUM_TEMP = 278.5  # Kelvin at 1 AU around a 1 L_sun star
DAYS_PER_YEAR = 365.25

# Mass thresholds, checked in order (strictly greater than)
STAR_MASS_THRESHOLDS: list[tuple[float, str]] = [
    (30.0, "O"),
    (10.0, "B"),
    (2.5, "A"),
    (1.4, "F"),
    (0.8, "G"),
    (0.5, "K"),
]

# Mass-luminosity exponent, keyed by StarType.value
LUMINOSITY_EXPONENTS: dict[str, float] = {
    "O": 4.0,
    "B": 4.0,
    "A": 3.5,
    "F": 3.5,
    "G": 4.0,
    "K": 2.3,
    "M": 2.3,
}
DEFAULT_LUMINOSITY_EXPONENT = 3.5

# Base photosphere temperature, keyed by StarType.value
BASE_TEMPERATURES: dict[str, float] = {
    "O": 35_000.0,
    "B": 20_000.0,
    "A": 8_500.0,
    "F": 6_500.0,
    "G": 5_500.0,
    "K": 4_000.0,
    "M": 3_000.0,
}
DEFAULT_BASE_TEMPERATURE = 5_500.0

# --- Colors (RGB) ---
# Blackbody approximation: first entry whose threshold is exceeded wins
STAR_TEMPERATURE_COLORS: list[tuple[float, tuple[int, int, int]]] = [
    (25_000.0, (155, 176, 255)),  # Blue
    (10_000.0, (202, 215, 255)),  # Blue-white
    (7_500.0, (248, 247, 255)),   # White
    (6_000.0, (255, 244, 234)),   # Yellow-white
    (5_000.0, (255, 214, 170)),   # Yellow
]
STAR_COOL_COLOR = (255, 204, 111)  # Orange / red

# Keyed by PlanetType.value
PLANET_SURFACE_COLORS: dict[str, tuple[int, int, int]] = {
    "ocean": (0, 100, 200),
    "desert": (200, 150, 100),
    "volcanic": (150, 50, 0),
    "frozen": (200, 220, 255),
    "gas_giant": (180, 140, 100),
    "ice_giant": (100, 150, 200),
    "toxic": (100, 150, 50),
}
DEFAULT_SURFACE_COLOR = (120, 100, 80)

# --- Naming ---
STAR_NAME_PREFIXES = [
    "Alpha", "Beta", "Gamma", "Delta", "Epsilon",
    "Zeta", "Eta", "Theta", "Iota", "Kappa",
]
STAR_NAME_SUFFIXES = [
    "Centauri", "Draconis", "Lyrae", "Cygni",
    "Aquilae", "Orionis", "Ursae", "Cassiopeiae",
]

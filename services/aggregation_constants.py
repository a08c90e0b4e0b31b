# services/aggregation_constants.py

"""Constants used throughout the claims aggregation module."""

# Variance thresholds (percent)
HIGH_VARIANCE_THRESHOLD = 25.0
STRONG_CORRELATION_THRESHOLD = 40.0
MODERATE_CORRELATION_THRESHOLD = 25.0

# Variance driver analysis
MIN_DRIVER_SUPPORT = 5
TOP_DRIVER_COUNT = 30

# Fallback values for categorical gaps
UNKNOWN_VALUE = 'Unknown'

# Processing modes
MODE_STREAMING = 'streaming'
MODE_MEMORY = 'memory'
SUPPORTED_MODES = [MODE_STREAMING, MODE_MEMORY]

# Performance settings
DEFAULT_CHUNK_SIZE = 10000
DEFAULT_PROGRESS_INTERVAL = 10000

# Directory paths
DEFAULT_INPUT_PATH = 'public/dat.csv'
DEFAULT_OUTPUT_DIR = 'public'

# CSV settings
DEFAULT_DELIMITER = ','
DEFAULT_ENCODING = 'utf-8'
OUTPUT_LINE_TERMINATOR = '\n'

# Output file names
YEAR_SEVERITY_FILE = 'year_severity_summary.csv'
COUNTY_YEAR_FILE = 'county_year_summary.csv'
INJURY_GROUP_FILE = 'injury_group_summary.csv'
ADJUSTER_PERFORMANCE_FILE = 'adjuster_performance_summary.csv'
VENUE_ANALYSIS_FILE = 'venue_analysis_summary.csv'
VARIANCE_DRIVERS_FILE = 'variance_drivers_analysis.csv'

# Log format shared by the command line entry points
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

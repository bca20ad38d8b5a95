"""Configuration settings for Pest Ops Workforce Analytics"""

# Company Information
COMPANY_NAME = "BeGone Skadedjur & Sanering"

# Terminal status that makes a job commission-eligible
COMPLETED_STATUS = "Completed"

# Commission (provision): 5% of the job price, split between assignees
COMMISSION_RATE = 0.05
ROLE_RATES = {
    'primary': 0.60,
    'secondary': 0.30,
    'tertiary': 0.10
}
ASSIGNEE_ROLES = ['primary', 'secondary', 'tertiary']

# Canonical commission rule: 'role_split' or 'flat_primary'
COMMISSION_POLICY = 'role_split'

# Job origins used for the stacked monthly view
JOB_SOURCES = ['private', 'business']

# Reporting windows
DEFAULT_MONTHS_BACK = 12
DEFAULT_SCHEDULE_DAYS = 7
RECENT_CASES_DAYS = 7

# Schedule gaps (hours)
MIN_GAP_HOURS = 1.0
MAJOR_GAP_HOURS = 3.0
SUGGESTED_SLOT_HOURS = 2.0

# Utilization thresholds (percent)
UNDERUTILIZED_BELOW = 60.0
OVERUTILIZED_ABOVE = 90.0

# Pricing patterns
MIN_CATEGORY_SAMPLES = 3
MAX_PATTERN_SAMPLES = 25
FALLBACK_CATEGORY = 'Other'

# Ordered pest category rules: first matching pattern wins
PEST_CATEGORY_RULES = [
    ('Rodents', r'\b(r[aå]tt\w*|rats?\b|mice\b|mouse|mus\b|möss|gnagare|rodents?)'),
    ('Ants', r'\b(myr\w*|ants?\b)'),
    ('Cockroaches', r'\b(kackerlack\w*|cockroach\w*)'),
    ('Bedbugs', r'\b(vägglöss|vägglus|bed ?bugs?)'),
    ('Wasps', r'\b(geting\w*|wasps?\b|hornets?)'),
    ('Birds', r'\b(fåg\w*|birds?\b|pigeons?|duvor)'),
    ('Spiders', r'\b(spindl\w*|spindel|spiders?)'),
]

# Complexity keyword weights (case-insensitive substring match)
COMPLEXITY_WEIGHTS = [
    ('extensive', 3),
    ('complex', 3),
    ('follow-up', 2),
    ('infestation', 2),
    ('many', 1),
    ('large', 1),
    ('simple', -2),
    ('small', -1),
    ('routine', -1),
]

# Complexity levels by score (minimum score, level)
COMPLEXITY_LEVELS = [
    (3, 'high'),
    (1, 'medium'),
    (0, 'low'),
]

# Duration buckets for pricing (upper bound in hours, label)
DURATION_BUCKETS = [
    (2.0, 'short'),
    (4.0, 'medium'),
    (None, 'long'),
]

# Weekday labels shown in gap output
WEEKDAY_DISPLAY_NAMES = {
    'monday': 'måndag',
    'tuesday': 'tisdag',
    'wednesday': 'onsdag',
    'thursday': 'torsdag',
    'friday': 'fredag',
    'saturday': 'lördag',
    'sunday': 'söndag'
}

# User-facing error messages
ERROR_MESSAGES = {
    'fetch_failed': 'Could not fetch {entity} records',
    'aggregation_failed': 'Could not compute workforce analytics: {reason}',
    'unknown_policy': 'Unknown commission policy: {policy}'
}

# Excel styling
EXCEL_STYLES = {
    'header_bg_color': 'D3D3D3',  # Light gray
    'summary_bg_color': '00FFFF',  # Cyan
    'font_name': 'Arial',
    'font_size': 10
}

# Payroll CSV export
PAYROLL_CSV_SEPARATOR = ';'

# Local timezone for naive work-calendar arithmetic
LOCAL_TIMEZONE = 'Europe/Stockholm'

from math import pi, tau

VERSION = "0.1.0"

PI = pi
TWO_PI = tau
FOUR_PI = 2.0 * tau
HRS_IN_DAY = 24
HRS_IN_YEAR = 8760
SEC_IN_HR = 3600
SEC_IN_DAY = 86400
DAYS_IN_YEAR = 365
MONTHS_IN_YEAR = 12

# load aggregation
HRS_IN_MONTH = 730
SUB_AGG = 15  # hours kept at sub-hourly resolution
AGG = 192  # hours of hourly overlap before monthly buckets are used
MAX_TS_IN_HR = 60

# runtime sanity limit on |T_out - T_in|, K
DELTA_TEMP_LIMIT = 100.0
MAX_EXCURSION_WARNINGS = 5

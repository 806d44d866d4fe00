"""Prometheus custom metrics for the Creative Lab Service."""

from prometheus_client import Counter, Histogram

# --- CRUD Operations ---
AD_OPERATIONS = Counter(
    "creative_lab_ad_operations_total",
    "Total CRUD operations on ads",
    ["operation"],  # create / update / move / delete / list / get
)

# --- Status Transitions ---
STATUS_TRANSITIONS = Counter(
    "creative_lab_status_transitions_total",
    "Total accepted ad status transitions",
    ["from_status", "to_status"],
)

REJECTED_TRANSITIONS = Counter(
    "creative_lab_rejected_transitions_total",
    "Total rejected ad status transitions",
    ["kind"],  # locked / validation
)

# --- Expiry Sweeper ---
SWEEPER_CHANGES = Counter(
    "creative_lab_sweeper_changes_total",
    "Ads changed by the expiry sweeper",
    ["rule"],  # expired / repaired
)

# --- Learnings ---
LEARNINGS = Counter(
    "creative_lab_learnings_total",
    "Learnings extracted from completed ads",
    ["status"],  # created / failed
)

# --- S3 Uploads ---
S3_UPLOADS = Counter(
    "creative_lab_s3_uploads_total",
    "Total uploads to S3",
    ["status"],  # success / rejected / error
)

S3_UPLOAD_DURATION = Histogram(
    "creative_lab_s3_upload_duration_seconds",
    "Duration of S3 uploads",
    buckets=(0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30),
)

# --- AI Reports ---
REPORT_REQUESTS = Counter(
    "creative_lab_report_requests_total",
    "Total AI report requests",
    ["mode", "status"],  # json / stream, success / error
)

REPORT_DURATION = Histogram(
    "creative_lab_report_duration_seconds",
    "Duration of AI report generation",
    buckets=(0.5, 1, 2, 5, 10, 20, 30, 60),
)

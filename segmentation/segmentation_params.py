"""
Centralized Parameters for Respondent Segmentation

Defaults for every stage of the pipeline live here. They are plain values;
callers override them through ``SegmentationConfig`` or function arguments.
"""

# =============================================================================
# SURVEY COLUMNS
# =============================================================================

# Self-reported attitude scores used as clustering features (1-7 scale)
ATTITUDE_COLS = (
    "ConstCom",
    "TimelyInf",
    "TaskMgm",
    "DeviceSt",
    "Wellness",
    "Athlete",
    "Style",
)

# Demographic attributes used only for validation
GENDER_COL = "Female"      # 1 = female, 0 = male
EDUCATION_COL = "Degree"   # ordinal education level
INCOME_COL = "Income"      # ordinal bracket 1..5
AGE_COL = "Age"            # integer years

# Name of the assignment column added by label_observations
CLUSTER_COL = "cluster"

# =============================================================================
# CLUSTERING PARAMETERS
# =============================================================================

# Number of independent restarts; best inertia wins
N_RESTARTS = 25

# Lloyd iteration cap per restart
MAX_ITER = 10

# Seed for reproducible results
RANDOM_STATE = 123

# Candidate cluster counts for the elbow / silhouette diagnostics
K_RANGE = range(2, 11)

# Worker processes for restarts (joblib semantics: 1 = sequential, -1 = all cores)
N_JOBS = 1

# =============================================================================
# STATISTICAL VALIDATION
# =============================================================================

# Family-wise significance level for Tukey comparisons
ALPHA = 0.05

# Continuous demographic tested with ANOVA + Tukey
CONTINUOUS_DEMOGRAPHIC = AGE_COL

# Categorical demographics tested for independence from cluster membership
CATEGORICAL_DEMOGRAPHICS = (GENDER_COL, INCOME_COL, EDUCATION_COL)

# Chi-square approximation is flagged when any expected count falls below this
MIN_EXPECTED_COUNT = 5.0

# Readable level names for contingency table rows (unlisted columns keep raw codes)
LEVEL_LABELS = {
    GENDER_COL: {0: "Male", 1: "Female"},
    INCOME_COL: {
        1: "Very Low",
        2: "Low",
        3: "Moderate",
        4: "High",
        5: "Very High",
    },
}

# Status reported for clusters without members
EMPTY_CLUSTER = "empty cluster"

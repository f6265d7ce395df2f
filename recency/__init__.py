from recency.models import DateEvidence, RecencyAssessment, RecencyVerdict
from recency.engine import RecencyEvaluator, assess

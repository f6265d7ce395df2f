from similarity.models import ExcerptVerdict, SimilarityCandidate
from similarity.search import GoogleCustomSearch, SearchService
from similarity.engine import SimilarityChecker, jaccard_similarity

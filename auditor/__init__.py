from auditor.errors import AuditError, CheckError, InvalidURLError, PersistenceError
from auditor.models import AuditReport, CheckResult, CheckStatus


def build_orchestrator(config=None):
    """
    Wires the default collaborators: requests + Playwright for pages,
    Google APIs for search and classification.
    """
    # Phase packages import auditor; defer them so `import auditor` stays cheap and acyclic.
    from auditor.core import AuditConfig
    from auditor.fetcher import HttpPageFetcher
    from auditor.orchestrator import CheckOrchestrator
    from auditor.policy import PolicyFilter
    from auditor.redirect import RedirectInspector
    from auditor.renderer import PlaywrightRenderer
    from ads.collector import AdSignalCollector
    from ads.engine import AdNetworkClassifier
    from recency.engine import RecencyEvaluator
    from screening.classifiers import GoogleNaturalLanguage, GoogleVision
    from screening.hate_speech import HateSpeechScreener
    from screening.image_safety import ImageSafetyChecker
    from similarity.engine import SimilarityChecker
    from similarity.search import GoogleCustomSearch

    config = config or AuditConfig.from_env()
    renderer = PlaywrightRenderer(config)
    fetcher = HttpPageFetcher(config, renderer=renderer)
    return CheckOrchestrator(
        policy=PolicyFilter(),
        redirect=RedirectInspector(config),
        recency=RecencyEvaluator(fetcher, config),
        hate_speech=HateSpeechScreener(fetcher, GoogleNaturalLanguage(config=config), config),
        plagiarism=SimilarityChecker(fetcher, GoogleCustomSearch(config=config), config),
        images=ImageSafetyChecker(fetcher, GoogleVision(config=config), config),
        ads=AdNetworkClassifier(AdSignalCollector(renderer, config), config),
        config=config,
    )


async def audit_url(url: str, config=None) -> AuditReport:
    return await build_orchestrator(config).audit_url(url)

from ads.models import AdClassification, AdElement, AdSignals, ImageKind, ImageSignal, NetworkSignal
from ads.engine import AdNetworkClassifier, classify, decide

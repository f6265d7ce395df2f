from screening.models import EntitySentiment, Likelihood, SafeSearchAnnotation, TextAnalysis
from screening.classifiers import GoogleNaturalLanguage, GoogleVision, ImageClassifier, TextClassifier
from screening.hate_speech import HateSpeechScreener
from screening.image_safety import ImageSafetyChecker

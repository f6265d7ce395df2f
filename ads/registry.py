"""
Read-only registries for ad-signal classification.
Premium networks are scanned in declaration order; the first matching network wins per request.
"""

PREMIUM_AD_NETWORKS = (
    ("Google AdSense", ("pagead2.googlesyndication.com", "adservice.google.com", "/pagead/js/")),
    ("Google Ad Manager", ("securepubads.g.doubleclick.net", "googletagservices.com")),
    ("Amazon Associates", ("amazon-adsystem.com", "assoc-amazon")),
    ("Media.net", ("media.net", "adservetx.media.net")),
    ("Mediavine", ("mediavine.com", "ads.mediavine.com")),
    ("AdThrive", ("adthrive.com", "ads.adthrive.com")),
    ("Ezoic", ("ezoic.net", "ezoic.com", "ezojs.com")),
    ("Taboola", ("taboola.com", "trc.taboola.com")),
    ("Outbrain", ("outbrain.com", "outbrainimg.com")),
    ("Criteo", ("criteo.com", "criteo.net")),
    ("Rubicon", ("rubiconproject.com", "fastlane.rubiconproject.com")),
    ("AppNexus", ("adnxs.com", "appnexus.com")),
    ("Index Exchange", ("casalemedia.com", "indexww.com")),
    ("OpenX", ("openx.net", "openx.com")),
    ("PubMatic", ("pubmatic.com", "ads.pubmatic.com")),
    ("Sovrn", ("sovrn.com", "lijit.com")),
    ("TripleLift", ("triplelift.com", "3lift.com")),
    ("Teads", ("teads.tv", "teads.com")),
    ("Sharethrough", ("sharethrough.com", "strl.co")),
    ("Verizon Media", ("yahoo.com/admax", "oath.com", "advertising.com")),
)

TRACKING_DOMAINS = (
    "google-analytics.com", "analytics.google.com", "doubleclick.net",
    "facebook.com/tr", "facebook.com/signals", "pixel.facebook.com",
    "bat.bing.com", "analytics.twitter.com", "static.ads-twitter.com",
    "ads.linkedin.com", "px.ads.linkedin.com", "snap.licdn.com",
    "analytics.pinterest.com", "ct.pinterest.com", "pixel.quantserve.com",
    "pixel.mathtag.com", "beacon.krxd.net", "analytics.tiktok.com",
    "pixel.advertising.com", "pixel.rubiconproject.com", "pixel.tapad.com",
    "beacon.clickequations.net", "pixel.sitescout.com", "analytics.yahoo.com",
    "sp.analytics.yahoo.com", "clarity.ms", "hotjar.com", "mouseflow.com",
    "fullstory.com", "segment.io", "segment.com", "mixpanel.com",
    "amplitude.com", "statcounter.com", "chartbeat.com", "parsely.com",
    "newrelic.com", "sentry.io",
)

IMPRESSION_PATTERNS = (
    "impression", "imp", "pixel", "beacon", "track", "view", "log", "event", "analytics",
    "collect", "ping", "hit", "stats", "conversion", "click", "pageview", "metric",
)

AD_CREATIVE_PATTERNS = (
    "/ad/", "/ads/", "/adv/", "/advert/", "/banner/", "/promo/", "/sponsor/",
    "ad.", "ads.", "advert", "banner", "creative", "promo", "sponsor",
)

CONTENT_IMAGE_PATTERNS = (
    "media.", "images.", "photos.", "img.", "content.", "assets.",
    "/media/", "/images/", "/photos/", "/img/", "/content/", "/assets/",
    "stellar/prod", "article", "news", "story", "photo", "gallery",
)

AD_ELEMENT_SELECTORS = (
    'iframe[src*="ad"]', 'iframe[src*="ads"]', 'iframe[id*="google_ads"]', 'iframe[id*="ad"]',
    'div[id*="ad-"]', 'div[class*="ad-"]', 'div[id*="banner"]', 'div[class*="banner"]',
    'div[id*="Advertisement"]', 'div[class*="Advertisement"]', 'div[data-ad]', 'ins.adsbygoogle',
    'div[id*="taboola"]', 'div[id*="outbrain"]', 'div[class*="sponsored"]', 'div[class*="partner-content"]',
)

# Ancestor levels inspected for container context
ANCESTOR_DEPTH = 5

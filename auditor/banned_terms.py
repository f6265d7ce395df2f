"""
Banned URL terms and top-level domains, organized by category.
A match triggers an immediate failure without running other checks.

Declaration order is significant: categories are scanned in the order below.
Both tables are read-only after import.
"""

BANNED_TERMS = (
    ("adult", (
        "porn", "xxx", "adult", "sex", "nude", "naked", "pussy", "dick",
        "cock", "tits", "boobs", "ass", "anal", "milf", "mature",
    )),
    ("drugs", (
        "cannabis", "marijuana", "weed", "cocaine", "heroin", "meth",
        "mdma", "ecstasy", "lsd", "shrooms", "psychedelics", "drugs",
    )),
    ("gambling", (
        "casino", "poker", "bet", "betting", "slots", "gambling",
        "lottery", "roulette", "blackjack",
    )),
    ("weapons", (
        "guns", "firearms", "weapons", "ammo", "ammunition",
        "rifle", "pistol", "shotgun",
    )),
    ("punycode", (
        "xn--",
    )),
    ("malicious", (
        "phishing", "malware", "trojan", "virus", "hack",
        "crack", "keygen", "warez", "torrent", "pirate",
    )),
)

BANNED_TLDS = frozenset({
    # Middle East
    "af", "ir", "iq", "lb", "ly", "ps", "sy", "ye",
    # Asia
    "bd", "kh", "id", "la", "my", "mm", "kp", "pk", "th", "vn",
    # Africa
    "bi", "cf", "cd", "lr", "ma", "so", "ss", "sd", "tn", "zw",
    # Europe
    "bg", "cy", "mt", "rs", "ru",
    # Americas
    "cu", "ni", "ve",
})

"""User-agent based filtering of automated traffic.

Advisory only: anything that lies about its user agent gets through.
"""

# Case-insensitive substrings of crawlers, link-preview fetchers,
# headless browsers and scripting toolchains.
BOT_PATTERNS = (
    "bot", "crawler", "spider", "scraper",
    "facebook", "twitter", "linkedin", "whatsapp", "telegram",
    "googlebot", "bingbot", "slurp", "duckduckbot", "baiduspider", "yandexbot",
    "facebookexternalhit", "twitterbot", "linkedinbot", "pinterestbot",
    "headlesschrome", "phantomjs", "selenium",
    "curl", "wget", "python", "java", "node",
)


def is_bot(user_agent: str) -> bool:
    """Return True if the user agent matches a known automated client."""
    if not user_agent:
        return False
    ua = user_agent.lower()
    return any(pattern in ua for pattern in BOT_PATTERNS)

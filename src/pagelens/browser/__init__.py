"""Browser automation modules (Playwright, async API).

Session lifecycle lives in ``session`` (one lazily launched browser
process, one isolated context per request) with fingerprint rotation in
``fingerprint`` and anti-detection patches in ``stealth``.

Element discovery is handled by ``extractor`` (structural taxonomy) and
``visual`` (geometry-filtered, confidence-tiered fallback scan).
"""

"""
Global configuration constants for the diagnostics engine.
All tunable thresholds live here.
"""
import os

# ── Status thresholds ─────────────────────────────────────────────────────────
# Used when a result is produced outside a catalog run; during a run the
# criterion's own pass/warn thresholds decide the status.
DEFAULT_PASS_THRESHOLD = 85.0
DEFAULT_WARN_THRESHOLD = 60.0

# ── Length curves (ideal [min, max] in characters) ────────────────────────────
TITLE_IDEAL_RANGE = (15, 65)
DESCRIPTION_IDEAL_RANGE = (50, 160)

LENGTH_SCORE_BELOW_MAX = 60.0   # score reached just before the ideal minimum
LENGTH_SCORE_FLOOR = 20.0       # overshoot never drops below this

TITLE_LENGTH_WEIGHT = 0.6
TITLE_BRAND_BONUS = 40.0

# ── Brand resolution ──────────────────────────────────────────────────────────
BRAND_MIN_CHARS = 3

LEGAL_SUFFIXES = (
    "inc", "incorporated", "llc", "ltd", "limited", "gmbh", "corp",
    "corporation", "co", "company", "plc", "lp", "llp", "sa", "ag",
    "bv", "pty", "srl", "oy", "ab", "kg",
)

ORGANIZATION_TYPES = ("Organization", "Corporation", "LocalBusiness", "WebSite")

# ── HTML handling ─────────────────────────────────────────────────────────────
MAX_HTML_BYTES = 2_097_152              # 2 MB, larger payloads are truncated
MIN_RENDERED_HTML_BYTES = 1_024         # smaller rendered payloads count as failed renders

# ── Content thresholds ────────────────────────────────────────────────────────
SHORT_PAGE_WORD_COUNT = 300
SITE_H2_LENIENT_WORD_COUNT = 1000
WORDS_PER_H2 = 200
INTERNAL_LINKS_FULL = 10
INTERNAL_LINKS_PARTIAL = 3
LINK_DIVERSITY_MIN = 0.4
FAQ_SCHEMA_FULL_PAIRS = 3

# ── Site aggregates ───────────────────────────────────────────────────────────
DEFAULT_PASS_CUTOFF = 60

# Per-page score at or above which a page "passes" the underlying check.
PASS_CUTOFFS: dict[str, int] = {
    "A3_faq_presence":         60,
    "A4_schema_faqpage":       60,
    "G10_canonical":           85,
    "T1_mobile_viewport":      85,
    "T2_lang_region":          85,
    "T3_noindex_robots":       85,
    "A12_entity_graph":        85,
    "G2_og_tags_completeness": 60,
    "A6_contact_cta_presence": 60,
    "A9_internal_linking":     60,
    "C3_h1_presence":          85,
    "A2_headings_semantic":    70,
    "C2_meta_description":     60,
}

FAILING_SAMPLE_LIMIT = 5

# ── Network probes ────────────────────────────────────────────────────────────
PROBE_TIMEOUT = 10                      # seconds, per attempt
PROBE_MAX_WORKERS = 4
DEFAULT_USER_AGENT = (
    "DiagnosticsBot/1.0 (+https://github.com/content-diagnostics)"
)

SITEMAP_FALLBACK_PATHS = ["/sitemap.xml", "/sitemap_index.xml", "/sitemap"]
SITEMAP_FULL_ENTRIES = 50
SITEMAP_PARTIAL_ENTRIES = 20

AI_BOTS = [
    "GPTBot",
    "ClaudeBot",
    "Claude-Web",
    "PerplexityBot",
    "CCBot",
    "Google-Extended",
]
BOT_ACCESS_NEUTRAL_SCORE = 50

# ── Orchestration ─────────────────────────────────────────────────────────────
DEFAULT_MAX_WORKERS = 8

# ── Persistence ───────────────────────────────────────────────────────────────
DATABASE_URL = os.environ.get("AUDIT_DATABASE_URL", "sqlite:///diagnostics.db")

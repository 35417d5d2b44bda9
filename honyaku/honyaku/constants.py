"""
Constants used throughout the Honyaku application.
"""

# Files
LOG_FILENAME = "honyaku.log"
CONFIG_FILENAME = "honyaku_config.json"
ORIGINAL_DIRNAME = "Original"
ONESHOT_ORIGINAL_FILENAME = "original.txt"
ONESHOT_TRANSLATED_FILENAME = "oneshot.txt"

# API Configuration
API_KEY_PLACEHOLDER = "YOUR_API_KEY_HERE"
DEFAULT_API_BASE_URL = "https://api.openai.com/v1"
DEFAULT_API_MODEL = "gpt-4o-mini"
DEFAULT_API_TIMEOUT = 60
CHAT_COMPLETIONS_PATH = "/chat/completions"
SSE_DATA_PREFIX = "data:"
SSE_DONE_SENTINEL = "[DONE]"

# Translation Defaults
TRANSLATION_CHUNK_SIZE_CHARS = 4000
TRANSLATION_RETRIES = 3
TRANSLATION_DELAY_SEC = 1.0
TRANSLATION_HISTORY_LENGTH = 5
TRANSLATION_FAILED_MARKER = "[TRANSLATION FAILED]"
TITLE_FAILED_SUFFIX = "[TRANSLATION_FAILED]"
CHUNK_SEPARATOR = "\n\n"

# Name Scout Defaults
NAME_SCOUT_CHUNK_SIZE_CHARS = 2500
NAME_SCOUT_DELAY_SEC = 1.0
NAME_SCOUT_JSON_RETRIES = 3

# Progress Display
PROGRESS_INTERVAL_SEC = 1.0  # Streaming progress callback fires at most this often
PROGRESS_PREVIEW_CHARS = 50
TITLE_LOG_SNIPPET_CHARS = 30

# Model responses that start with one of these are treated as refusals.
# Matching is a case-insensitive prefix match on the trimmed response.
REFUSAL_PHRASES = (
    "i'm sorry",
    "i cannot",
    "i am unable",
    "as an ai",
    "my apologies",
    "i am not programmed",
    "i do not have the ability",
)

# Name Validation
# Originals must not contain whitespace, punctuation or separators.
BAD_ORIGINAL_PATTERN = r"[\s・･｡､,，。／/：:;!！?？\-—–‑·（）()［\]{}＜＞<>『』「」〈〉【】]"

HONORIFIC_SUFFIX_PATTERN = r"(さん|ちゃん|くん|君|様|さま|殿|氏|先生|先輩|嬢)$"

ENGLISH_HONORIFICS = (
    "-san", "-chan", "-kun", "-sama",
    " san", " chan", " kun", " sama",
)

# Words the scout tends to mislabel as character names. Exact match only.
ORIGINAL_NAME_DENYLIST = frozenset({
    # Pronouns / self-references
    "彼", "彼女", "あいつ", "こいつ", "そいつ", "こちとら", "こちら", "自分",
    "私", "わたし", "わたくし", "俺", "おれ", "僕", "ぼく", "うち",
    "あなた", "君", "きみ", "お前", "おまえ", "貴様",
    # Plurals and groups
    "彼ら", "彼女ら", "俺たち", "僕ら", "私たち", "あなたたち", "皆", "みんな",
})

# Filenames
FILENAME_INVALID_CHARS = '\\/*?"<>|'
FILENAME_REPLACEMENT_CHAR = "_"

# Editors tried in order when none is configured
EDITOR_CANDIDATES_WINDOWS = ("notepad", "code", "notepad++")
EDITOR_CANDIDATES_MACOS = ("open", "code", "vim", "nano")
EDITOR_CANDIDATES_LINUX = ("kate", "gedit", "code", "vim", "nano", "emacs")

# Prompts
TITLE_TRANSLATION_PROMPT = (
    "You are a Japanese to English translator. Translate the following Japanese "
    "novel title to English. Provide only the translated title, nothing else."
)

CONTENT_TRANSLATION_PROMPT = (
    "You are a Japanese to English translator specializing in web novels. "
    "Translate the following Japanese text to natural English, preserving the "
    "author's style and tone. Character names have already been converted to "
    "English - do not change them."
)

NAME_SCOUT_PROMPT = """You read Japanese fiction text and extract character name parts.
Return ONLY JSON with this shape:
{"names":[{"original":"<exact name characters>","part":"family|given|unknown","english":"<best English rendering>"}]}
Treat given and family names separately. Use romaji or common English equivalents. No explanations."""

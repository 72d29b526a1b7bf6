"""
Japanese address text normalization.

Handles:
- Full-width / half-width Latin letter and digit conversion
- Whitespace folding into a single SPACE sentinel
- Dash variants folded into a single DASH sentinel
- Leading 大字 (oaza) prefix removal
- Prefecture name extraction
"""

import re

# Internal alphabet: every recognised dash / space variant is folded into these
DASH = "-"
SPACE = " "

# Characters that always mean "dash" in an address
DASH_SYMBOLS = (
    "-"
    "‐"  # hyphen
    "‑"  # non-breaking hyphen
    "‒"  # figure dash
    "–"  # en dash
    "—"  # em dash
    "―"  # horizontal bar
    "⁃"  # hyphen bullet
    "−"  # minus sign
    "⎯"  # horizontal line extension
    "⏤"  # straightness
    "─"  # box drawings light horizontal
    "━"  # box drawings heavy horizontal
    "〜"  # wave dash
    "﹘"  # small em dash
    "﹣"  # small hyphen-minus
    "－"  # full-width hyphen-minus
    "～"  # full-width tilde
)

# Prolonged sound marks are dashes only when they touch a digit (1ー2, but not センター)
PROLONGED_SOUND_MARKS = "ーｰ"

OAZA_PREFIX = "大字"

_FULLWIDTH_ALNUM = re.compile(r"[０-９Ａ-Ｚａ-ｚ]")
_WHITESPACE = re.compile(r"\s+")
_SPACE_OUTSIDE_ALNUM = re.compile(r"(?<![0-9A-Za-z]) | (?![0-9A-Za-z])")
_DASH_CHARS = re.compile(f"[{re.escape(DASH_SYMBOLS)}]")
_DASH_NEAR_DIGIT = re.compile(
    f"(?<=[0-9])[{PROLONGED_SOUND_MARKS}]|[{PROLONGED_SOUND_MARKS}](?=[0-9])"
)

PREFECTURES = (
    "北海道", "青森県", "岩手県", "宮城県", "秋田県", "山形県", "福島県",
    "茨城県", "栃木県", "群馬県", "埼玉県", "千葉県", "東京都", "神奈川県",
    "新潟県", "富山県", "石川県", "福井県", "山梨県", "長野県", "岐阜県",
    "静岡県", "愛知県", "三重県", "滋賀県", "京都府", "大阪府", "兵庫県",
    "奈良県", "和歌山県", "鳥取県", "島根県", "岡山県", "広島県", "山口県",
    "徳島県", "香川県", "愛媛県", "高知県", "福岡県", "佐賀県", "長崎県",
    "熊本県", "大分県", "宮崎県", "鹿児島県", "沖縄県",
)

_PREFECTURE_PATTERN = re.compile("^(" + "|".join(PREFECTURES) + ")")


def normalize_width(text: str) -> str:
    """Convert full-width Latin letters, digits and the ideographic space to half-width."""
    text = _FULLWIDTH_ALNUM.sub(lambda m: chr(ord(m.group(0)) - 0xFEE0), text)
    return text.replace("　", " ")


def normalize_spaces(text: str) -> str:
    """Fold whitespace runs into SPACE, keeping it only between half-width alphanumerics."""
    text = _WHITESPACE.sub(SPACE, text).strip(SPACE)
    return _SPACE_OUTSIDE_ALNUM.sub("", text)


def normalize_dashes(text: str) -> str:
    """Fold every dash variant into DASH."""
    text = _DASH_CHARS.sub(DASH, text)
    return _DASH_NEAR_DIGIT.sub(DASH, text)


def strip_oaza_prefix(text: str) -> str:
    while text.startswith(OAZA_PREFIX):
        text = text[len(OAZA_PREFIX):]
    return text


def normalize_address(address: str) -> str:
    """
    Canonicalize raw address text into the matcher's internal alphabet.

    Steps:
    1. Full-width to half-width (letters, digits, space)
    2. Whitespace folding
    3. Dash folding
    4. Leading 大字 removal

    The result is stable: normalizing it again returns it unchanged.
    """
    if not address:
        return ""

    text = normalize_width(address)
    text = normalize_spaces(text)
    text = normalize_dashes(text)
    return strip_oaza_prefix(text)


def extract_prefecture(address: str) -> str | None:
    """Extract prefecture name from address."""
    match = _PREFECTURE_PATTERN.match(address)
    return match.group(1) if match else None

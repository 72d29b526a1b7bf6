"""Kanji numeral helpers for town names (一丁目, 十六町, 壱番町 ...)."""

import re

# Kanji numeral mapping, including the formal 壱 used in older town names
KANJI_NUMS = {
    "〇": "0", "一": "1", "壱": "1", "二": "2", "三": "3", "四": "4",
    "五": "5", "六": "6", "七": "7", "八": "8", "九": "9",
    "十": "10", "百": "100", "千": "1000",
}

# Digits that appear in chōme / jō / banchō names of the address base registry
KANJI_1TO10_SYMBOLS = "一二三四五六七八九十"

_KANJI_NUM_RUN = re.compile("[" + "".join(KANJI_NUMS) + "]+")
_PRECEDED_CHO = re.compile(".町")


def _run_to_int(run: str) -> int:
    total = 0
    current = 0

    for char in run:
        val = KANJI_NUMS[char]
        if val in ("10", "100", "1000"):
            multiplier = int(val)
            if current == 0:
                current = 1
            total += current * multiplier
            current = 0
        else:
            # 〇 and positional writing (二〇 -> 20)
            current = current * 10 + int(val)

    return total + current


def kanji_to_arabic(text: str) -> str:
    """Convert every run of kanji numerals to Arabic digits. 十六 -> 16, 二十三 -> 23, 壱 -> 1."""
    return _KANJI_NUM_RUN.sub(lambda m: str(_run_to_int(m.group(0))), text)


def is_kanji_number_followed_by_cho(name: str) -> bool:
    """
    True when the first 町 that has a character before it follows a kanji numeral (十六町, 三町目).

    Dropping 町 from such names would leave a bare number that block-number
    parsing downstream cannot tell apart from a chōme.
    """
    match = _PRECEDED_CHO.search(name)
    if not match:
        return False
    return match.group(0)[0] in KANJI_NUMS

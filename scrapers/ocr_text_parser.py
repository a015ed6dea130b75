#!/usr/bin/env python3
"""
スクショOCRテキスト → 台データ抽出

データカウンター・データサイトのスクショをOCRした生テキストから
総回転数・BIG・REG・差枚（あれば機種名）を拾う。

手順:
1. 正規化（全角数字→半角、区切りカンマ除去、全角G/±→半角、小文字化）
2. 機種名照合（MACHINESの並び順で最初に一致したもの）
3. 項目ごとにパターンを優先順に試し、最初に一致したものを採用
   （ラベル付きパターン → 数字だけのパターンの順。ラベル付きの方が確度が高い）

数字だけのパターン（総回転数・差枚のフォールバック）は無関係な数字を拾うことがある。
項目間の整合チェックはしない。
"""

import re

from config.machines import MACHINES

# 全角数字 → 半角
_FULLWIDTH_DIGITS = str.maketrans('０１２３４５６７８９', '0123456789')
# 全角記号 → 半角
_FULLWIDTH_SYMBOLS = str.maketrans({'Ｇ': 'G', '－': '-', '＋': '+'})

# 3桁区切りのカンマ（1,234 → 1234）
_THOUSANDS_COMMA = re.compile(r'(?<=\d),(?=\d{3}(?!\d))')
_SEPARATORS = re.compile(r'[ ,\t]+')
_WHITESPACE = re.compile(r'\s')


def _group_int(index: int):
    return lambda m: int(m.group(index))


# 項目ごとの (パターン, 値の取り出し) リスト。上から順に試す。
# 新しい表記に対応するときはここに足す
FIELD_PATTERNS = {
    'games': [
        # 総回転数: 3200G / 回転数 3200 / G数：3200 / total spins: 3200
        (re.compile(r'(総?回転数|g数|total\s?spins?|spins?|games?)\s*[:：]?\s*(\d{2,6})\s*g?'), _group_int(2)),
        # 3200G（1/150G のような確率表記の直後に / が続くものは除外）
        (re.compile(r'(\d{3,6})\s*g(?!/)'), _group_int(1)),
    ],
    'big': [
        (re.compile(r'(bb|big|ビッグ)\s*[:：]?\s*(\d{1,3})'), _group_int(2)),
    ],
    'reg': [
        (re.compile(r'(rb|reg|レギュラー)\s*[:：]?\s*(\d{1,3})'), _group_int(2)),
    ],
    'diff': [
        # 差枚: -1200 / 差枚数 +800 / 差玉 350
        (re.compile(r'(差枚数?|差玉|diff)\s*[:：]?\s*([+-]?\d{1,6})'), _group_int(2)),
        # 符号付きの数字（-1200枚）
        (re.compile(r'([+-]\d{1,6})\s*(枚)?'), _group_int(1)),
    ],
}

NUMERIC_FIELDS = ('games', 'big', 'reg', 'diff')


def normalize_text(raw: str) -> str:
    """OCRテキストを照合用に正規化する（何度かけても結果は同じ）"""
    text = (raw or '').translate(_FULLWIDTH_DIGITS)
    text = _THOUSANDS_COMMA.sub('', text)
    text = _SEPARATORS.sub(' ', text)
    text = text.replace(',', '')
    text = text.translate(_FULLWIDTH_SYMBOLS)
    return text.lower()


def match_machine(text: str, machines: dict = None) -> str:
    """正規化済みテキストに含まれる機種名を返す（なければNone）

    空白を除いた部分一致。テーブル順で最初に一致したものを採用する。
    """
    compact = _WHITESPACE.sub('', text)
    for key in (machines if machines is not None else MACHINES):
        key_norm = _WHITESPACE.sub('', key.lower())
        if key_norm and key_norm in compact:
            return key
    return None


def extract_field(text: str, patterns: list):
    """パターンを優先順に試し、最初に一致した値を返す（なければNone）"""
    for pattern, extractor in patterns:
        m = pattern.search(text)
        if m:
            return extractor(m)
    return None


def extract(raw_text: str) -> dict:
    """OCRテキストから台データを抽出する

    Returns:
        {'model_key', 'games', 'big', 'reg', 'diff'} のうち取れた項目だけのdict。
        数値項目が1つも取れなければNone（機種名だけでは使えないため）。
    """
    if not raw_text:
        return None
    text = normalize_text(raw_text)

    fields = {}
    model_key = match_machine(text)
    if model_key:
        fields['model_key'] = model_key

    for name in NUMERIC_FIELDS:
        value = extract_field(text, FIELD_PATTERNS[name])
        if value is not None:
            fields[name] = value

    if not any(name in fields for name in NUMERIC_FIELDS):
        return None
    return fields

#!/usr/bin/env python3
"""
機種プリセット・打法設定

ぶどう逆算に使う機種ごとの確率分母・払出枚数と、
打法ごとの小役取得率を定義する。
新機種・新打法の追加はテーブルにエントリを足すだけでよい（ロジック変更不要）。
"""

import math

# 機種プリセット
# replay/cherry/bell/piero: 各小役の確率分母（1/x の x）
# big_avg/reg_avg: BIG/REG 1回あたりの平均獲得枚数
# cherry_pay/bell_pay/piero_pay: 小役1回あたりの払出枚数
# ※OCRの機種名照合はこの並び順で最初に一致したものを採用する（順序に意味あり）
MACHINES = {
    'マイジャグラーV': {
        'replay': 7.298, 'cherry': 36, 'bell': 1024, 'piero': 1024,
        'big_avg': 239.25, 'reg_avg': 95.25,
        'cherry_pay': 2, 'bell_pay': 14, 'piero_pay': 10,
    },
    'SアイムジャグラーEX': {
        'replay': 7.298, 'cherry': 35.62, 'bell': 1092.27, 'piero': 1092.27,
        'big_avg': 251.25, 'reg_avg': 95.25,
        'cherry_pay': 2, 'bell_pay': 14, 'piero_pay': 10,
    },
    'ハッピージャグラーVⅢ': {
        'replay': 7.298, 'cherry': 56.55, 'bell': 655.36, 'piero': 655.36,
        'big_avg': 239.7, 'reg_avg': 95.7,
        'cherry_pay': 4, 'bell_pay': 14, 'piero_pay': 10,
    },
    'ファンキージャグラー2': {
        'replay': 7.298, 'cherry': 35.62, 'bell': 1092.27, 'piero': 1092.27,
        'big_avg': 239.25, 'reg_avg': 95.25,
        'cherry_pay': 2, 'bell_pay': 14, 'piero_pay': 10,
    },
    'ゴーゴージャグラー3': {
        'replay': 7.298, 'cherry': 32.2, 'bell': 1092.27, 'piero': 1092.27,
        'big_avg': 239.25, 'reg_avg': 95.25,
        'cherry_pay': 2, 'bell_pay': 14, 'piero_pay': 10,
    },
    'ミスタージャグラー': {
        'replay': 7.298, 'cherry': 37.24, 'bell': 420, 'piero': 655,
        'big_avg': 239.25, 'reg_avg': 95.25,
        'cherry_pay': 4, 'bell_pay': 14, 'piero_pay': 10,
    },
}

DEFAULT_MACHINE = 'マイジャグラーV'

# 確率分母のキー（0以下は不可: ゼロ除算防止）
DENOM_KEYS = ('replay', 'cherry', 'bell', 'piero')
# 払出・平均獲得のキー
PAYOUT_KEYS = ('big_avg', 'reg_avg', 'cherry_pay', 'bell_pay', 'piero_pay')

# ぶどう1回あたりの払出枚数（固定）
GRAPE_PAY = 8
# 1Gあたりの投入枚数
BET_PER_GAME = 3

# 打法ごとの取得率（自然発生した小役のうち実際に取得できる割合, 0〜1）
STRATEGIES = [
    {'key': 'random', 'label': '適当打ち',
     'capture': {'cherry': 0.667, 'bell': 0.1, 'piero': 0.05}},
    {'key': 'cherry90', 'label': 'チェリー狙い(90%)',
     'capture': {'cherry': 0.90, 'bell': 0.05, 'piero': 0.01}},
    {'key': 'cherry100', 'label': 'チェリー狙い(100%)',
     'capture': {'cherry': 1.00, 'bell': 0.00, 'piero': 0.00}},
    {'key': 'full', 'label': '完全攻略',
     'capture': {'cherry': 1.00, 'bell': 1.00, 'piero': 1.00}},
]


def list_machine_keys() -> list:
    """機種名一覧（テーブル順）"""
    return list(MACHINES.keys())


def get_machine_preset(machine_key: str) -> dict:
    """機種プリセットを取得（未登録の機種はデフォルト機種）"""
    preset = MACHINES.get(machine_key) or MACHINES[DEFAULT_MACHINE]
    return dict(preset)


def apply_overrides(preset: dict, overrides: dict) -> dict:
    """前提値（確率分母・払出）をユーザー入力で上書きした新しいプリセットを返す

    元のプリセットは変更しない。数値にならない値は無視してプリセット値を使う。
    確率分母は0以下だとゼロ除算になるため無視する。
    """
    result = dict(preset)
    for key, value in (overrides or {}).items():
        if key not in DENOM_KEYS and key not in PAYOUT_KEYS:
            continue
        try:
            num = float(str(value).replace(',', ''))
        except (TypeError, ValueError):
            continue
        if not math.isfinite(num):
            continue
        if key in DENOM_KEYS and num <= 0:
            continue
        result[key] = num
    return result

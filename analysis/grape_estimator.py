"""ぶどう逆算モジュール

差枚の収支式からぶどう回数を逆算する。

  IN  = 3 × G - 3 × (G / リプレイ分母)      （リプレイ分は投入なし扱い）
  OUT = BIG回数 × BIG平均 + REG回数 × REG平均
      + Σ (G / 小役分母) × 払出 × 取得率      （チェリー・ベル・ピエロ）
  差枚 = OUT + ぶどう回数 × 8 - IN

  → ぶどう回数 = (差枚 + IN - OUT) / 8

打法ごとに取得率が違うので、打法テーブルの全エントリで1回ずつ計算する。
収支が合わない（負になる）場合は0に丸める。例外は投げない。
"""

import math

from config.machines import BET_PER_GAME, GRAPE_PAY, STRATEGIES

SMALL_ROLES = ('cherry', 'bell', 'piero')


def number_or(value, fallback: float) -> float:
    """数値に変換（カンマ除去）。変換できない・有限でない場合はfallback"""
    try:
        if isinstance(value, (int, float)):
            num = float(value)
        else:
            num = float(str(value if value is not None else '').replace(',', '').strip())
    except (ValueError, OverflowError):
        return fallback
    return num if math.isfinite(num) else fallback


def session_numbers(stats: dict) -> tuple:
    """入力値（文字列可）を (G, BIG, REG, 差枚) の数値に変換"""
    stats = stats or {}
    return (
        number_or(stats.get('games'), 0),
        number_or(stats.get('big'), 0),
        number_or(stats.get('reg'), 0),
        number_or(stats.get('diff'), 0),
    )


def _ratio(games: float, denom) -> float:
    denom = number_or(denom, 0)
    if denom <= 0:
        return 0.0
    return games / denom


def reconcile(stats: dict, preset: dict, strategy: dict) -> dict:
    """1打法ぶんのぶどう回数・確率を逆算する

    Args:
        stats: {'games', 'big', 'reg', 'diff'}（数値 or 文字列）
        preset: 機種プリセット（config.machines.MACHINES の値）
        strategy: 打法（config.machines.STRATEGIES の要素）

    Returns:
        {
            'grapes_count': float,  # 0以上
            'grape_prob': float,    # G / ぶどう回数（回数0ならinf）
            'reconciled': bool,     # 丸め前の回数が0以上だったか
            'coin_in', 'out_jackpots', 'out_others', 'out_known': 内訳
        }
    """
    games, big, reg, diff = session_numbers(stats)
    capture = strategy.get('capture', {})

    coin_in = BET_PER_GAME * games - BET_PER_GAME * _ratio(games, preset.get('replay'))
    out_jackpots = big * number_or(preset.get('big_avg'), 0) + reg * number_or(preset.get('reg_avg'), 0)
    out_others = 0.0
    for role in SMALL_ROLES:
        out_others += (_ratio(games, preset.get(role))
                       * number_or(preset.get(f'{role}_pay'), 0)
                       * number_or(capture.get(role), 0))
    out_known = out_jackpots + out_others

    grapes_raw = (diff + coin_in - out_known) / GRAPE_PAY
    reconciled = math.isfinite(grapes_raw) and grapes_raw >= 0
    grapes_count = max(0.0, grapes_raw) if math.isfinite(grapes_raw) else 0.0
    grape_prob = games / grapes_count if grapes_count > 0 else math.inf

    return {
        'grapes_count': grapes_count,
        'grape_prob': grape_prob,
        'reconciled': reconciled,
        'coin_in': coin_in,
        'out_jackpots': out_jackpots,
        'out_others': out_others,
        'out_known': out_known,
    }


def reconcile_all(stats: dict, preset: dict, strategies: list = None) -> list:
    """全打法で逆算（テーブル順）"""
    results = []
    for s in strategies if strategies is not None else STRATEGIES:
        results.append({
            'key': s['key'],
            'label': s['label'],
            'result': reconcile(stats, preset, s),
        })
    return results


def format_int(n) -> str:
    """回数表示（例: 1,234）。有限でなければ '-'"""
    if not isinstance(n, (int, float)) or not math.isfinite(n):
        return '-'
    return f'{round(n):,}'


def format_prob(x) -> str:
    """確率表示（例: 1/5.64）。有限でない・0以下なら '-'"""
    if not isinstance(x, (int, float)) or not math.isfinite(x) or x <= 0:
        return '-'
    return f'1/{x:.2f}'

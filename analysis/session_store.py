#!/usr/bin/env python3
"""入力値・履歴の保存

data/{namespace}.state.json   : 最後に選んだ機種と入力値（入力のまま文字列で保持）
data/{namespace}.history.json : 計算結果の履歴（新しい順、最大10件）

読み込み失敗（ファイルなし・壊れたJSON）は空として扱う。
"""
import json
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path

import pytz

JST = pytz.timezone('Asia/Tokyo')

# 読み込み→書き込みの間に別スレッドの更新が割り込まないようにする
_LOCK = threading.Lock()

DATA_DIR = Path(os.environ.get('GRAPE_DATA_DIR', Path(__file__).parent.parent / 'data'))

STORAGE_NAMESPACE = 'jug-ocr-v1.2'
HISTORY_MAX = 10

# 保存する入力項目
STATE_FIELDS = ('model_key', 'games', 'big', 'reg', 'diff')

# 履歴の列（打法キー → 列名）
HISTORY_COLUMNS = {
    'random': 'prob_random',
    'cherry90': 'prob_c90',
    'cherry100': 'prob_c100',
    'full': 'prob_full',
}


def _state_path(data_dir: Path = None) -> Path:
    return Path(data_dir or DATA_DIR) / f'{STORAGE_NAMESPACE}.state.json'


def _history_path(data_dir: Path = None) -> Path:
    return Path(data_dir or DATA_DIR) / f'{STORAGE_NAMESPACE}.history.json'


def _read_json(path: Path, default):
    if not path.exists():
        return default
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError):
        return default
    return data if isinstance(data, type(default)) else default


def _write_json(path: Path, data):
    """一時ファイルに書いてから置き換える（書き込み途中の空ファイルを読ませない）"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f'.{path.name}.', suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def load_state(data_dir: Path = None) -> dict:
    """保存済みの入力値を読み込む（なければ空dict）"""
    return _read_json(_state_path(data_dir), {})


def save_state(partial: dict, data_dir: Path = None) -> dict:
    """入力値を既存の保存内容にマージして保存する

    値は入力のまま文字列で保持する（"3,000" などの表記を崩さない）。
    """
    with _LOCK:
        state = load_state(data_dir)
        for key, value in (partial or {}).items():
            if key not in STATE_FIELDS:
                continue
            state[key] = '' if value is None else str(value)
        _write_json(_state_path(data_dir), state)
    return state


def load_history(data_dir: Path = None) -> list:
    """履歴を読み込む（新しい順）"""
    return _read_json(_history_path(data_dir), [])


def make_history_row(model_key: str, formatted_probs: dict) -> dict:
    """履歴1行を作る

    Args:
        model_key: 機種名
        formatted_probs: {打法キー: '1/6.02' 形式の確率}
    """
    row = {'model_key': model_key}
    for strategy_key, column in HISTORY_COLUMNS.items():
        row[column] = formatted_probs.get(strategy_key, '-')
    row['saved_at'] = datetime.now(JST).strftime('%Y-%m-%d %H:%M')
    return row


def add_history(row: dict, data_dir: Path = None) -> list:
    """履歴の先頭に追加して保存（最大HISTORY_MAX件）"""
    with _LOCK:
        rows = [row] + load_history(data_dir)
        rows = rows[:HISTORY_MAX]
        _write_json(_history_path(data_dir), rows)
    return rows


def clear_history(data_dir: Path = None):
    """履歴を全削除"""
    with _LOCK:
        _write_json(_history_path(data_dir), [])

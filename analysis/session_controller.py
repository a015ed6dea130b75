#!/usr/bin/env python3
"""
ぶどう逆算セッション

入力値（機種・G数・BIG・REG・差枚）の状態管理と、
OCR結果の反映・全打法の計算・履歴行の作成をまとめる。
状態は毎回新しいdictで返す（引数は書き換えない）。
"""

from config.machines import DEFAULT_MACHINE, MACHINES, STRATEGIES, apply_overrides, get_machine_preset
from analysis.grape_estimator import format_int, format_prob, reconcile_all
from analysis.session_store import make_history_row

INPUT_FIELDS = ('games', 'big', 'reg', 'diff')

# OCRログのメッセージ
MSG_APPLIED = '✅ 数値を反映しました。'
MSG_NOT_FOUND = '⚠️ 必要項目を特定できませんでした。数値を大きく写したスクショでお試しください。'


def empty_state(model_key: str = DEFAULT_MACHINE) -> dict:
    """初期状態（入力はブランク）"""
    if model_key not in MACHINES:
        model_key = DEFAULT_MACHINE
    state = {'model_key': model_key}
    for field in INPUT_FIELDS:
        state[field] = ''
    return state


def restore_state(saved: dict) -> dict:
    """保存済みの値から状態を復元（未登録の機種はデフォルト）"""
    state = empty_state((saved or {}).get('model_key', DEFAULT_MACHINE))
    for field in INPUT_FIELDS:
        value = (saved or {}).get(field)
        if value is not None:
            state[field] = str(value)
    return state


def switch_model(state: dict, model_key: str) -> dict:
    """機種切替（入力はクリアする）"""
    if model_key not in MACHINES:
        return dict(state)
    return empty_state(model_key)


def reset_inputs(state: dict) -> dict:
    """入力だけクリア（機種はそのまま）"""
    return empty_state(state.get('model_key', DEFAULT_MACHINE))


def update_inputs(state: dict, values: dict) -> dict:
    """入力値を更新。機種が変わる場合は先に切り替える"""
    new_state = dict(state)
    model_key = (values or {}).get('model_key')
    if model_key and model_key != state.get('model_key'):
        new_state = switch_model(new_state, model_key)
    for field in INPUT_FIELDS:
        if field in (values or {}) and values[field] is not None:
            new_state[field] = str(values[field])
    return new_state


def merge_extracted(state: dict, fields: dict) -> dict:
    """OCR抽出結果を反映する

    機種名が取れたら先に機種を切り替え（入力クリア）、
    取れた数値項目だけを上書きする。取れなかった項目は元の値のまま。
    """
    new_state = dict(state)
    model_key = fields.get('model_key')
    if model_key and model_key in MACHINES:
        new_state = switch_model(new_state, model_key)
    for field in INPUT_FIELDS:
        if fields.get(field) is not None:
            new_state[field] = str(fields[field])
    return new_state


def calculate(state: dict, overrides: dict = None) -> list:
    """全打法でぶどう確率を計算

    Returns:
        [{'key', 'label', 'grapes_count', 'grape_prob', 'count_text', 'prob_text', 'reconciled'}]
    """
    preset = apply_overrides(get_machine_preset(state.get('model_key')), overrides)
    results = []
    for r in reconcile_all(state, preset, STRATEGIES):
        res = r['result']
        results.append({
            'key': r['key'],
            'label': r['label'],
            'grapes_count': res['grapes_count'],
            'grape_prob': res['grape_prob'],
            'count_text': format_int(res['grapes_count']),
            'prob_text': format_prob(res['grape_prob']),
            'reconciled': res['reconciled'],
        })
    return results


def history_row(state: dict, results: list) -> dict:
    """計算結果から履歴1行を作る"""
    probs = {r['key']: r['prob_text'] for r in results}
    return make_history_row(state.get('model_key', DEFAULT_MACHINE), probs)


def read_screenshot(state: dict, image, recognize, extract, filename: str = '') -> dict:
    """スクショをOCRして状態に反映する

    Args:
        state: 現在の状態
        image: 画像（recognizeに渡すもの）
        recognize: OCR関数 recognize(image, logger=...) -> str
        extract: 抽出関数 extract(text) -> dict or None
        filename: ログ表示用のファイル名

    Returns:
        {'state', 'fields', 'text', 'log': [str], 'found': bool}
        OCR自体が失敗した場合は例外をそのまま送出する（状態は変えない）。
    """
    log = [f'読み取り開始: {filename}' if filename else '読み取り開始']

    def on_progress(status, progress):
        log.append(f'{status} {round((progress or 0) * 100)}%')

    text = recognize(image, logger=on_progress)
    log.append('--- 抽出テキスト ---')
    log.append(text)
    log.append('-------------------')

    fields = extract(text)
    if fields:
        new_state = merge_extracted(state, fields)
        log.append(MSG_APPLIED)
    else:
        new_state = dict(state)
        log.append(MSG_NOT_FOUND)

    return {
        'state': new_state,
        'fields': fields or {},
        'text': text,
        'log': log,
        'found': bool(fields),
    }
